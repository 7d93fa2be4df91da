"""Excel output of collected quotes.

The workbook holds a single "Stock Prices" sheet with exactly three columns,
in this order: Stock Symbol, Current Price, Timestamp. Rows follow batch
order. Prices are written as the literal text taken from the page (or the
"Error" sentinel), never converted to numbers.
"""

from pathlib import Path
from typing import Sequence

import pandas as pd
from openpyxl.utils import get_column_letter

from config.settings import GlobalConfig, get_config
from quote_harvester.exceptions import SinkWriteError
from quote_harvester.logger import get_logger
from quote_harvester.validator import Quote

log = get_logger(__name__)

SHEET_NAME = "Stock Prices"
COLUMNS = ["Stock Symbol", "Current Price", "Timestamp"]


def quotes_to_dataframe(quotes: Sequence[Quote]) -> pd.DataFrame:
    """Convert quotes to a three-column DataFrame in batch order."""
    records = [
        {
            "Stock Symbol": quote.symbol,
            "Current Price": quote.price,
            "Timestamp": quote.timestamp,
        }
        for quote in quotes
    ]
    return pd.DataFrame(records, columns=COLUMNS, dtype=str)


class QuoteReportWriter:
    """Writes a batch of quotes to the configured Excel workbook.

    Attributes:
        config: GlobalConfig instance providing ``output_path``.

    Example:
        writer = QuoteReportWriter(config)
        path = writer.write(quotes)
    """

    def __init__(self, config: GlobalConfig | None = None) -> None:
        self.config = config or get_config()

    @property
    def output_path(self) -> Path:
        return self.config.output_path

    def write(self, quotes: Sequence[Quote]) -> Path:
        """Write ``quotes`` to the workbook, replacing any previous file.

        Args:
            quotes: Quotes in batch order.

        Returns:
            Path to the written workbook.

        Raises:
            SinkWriteError: If the workbook cannot be written.
        """
        output_path = self.output_path
        log.info("Writing quote workbook", output_path=str(output_path), rows=len(quotes))

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            df = quotes_to_dataframe(quotes)

            with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
                df.to_excel(writer, sheet_name=SHEET_NAME, index=False)
                self._autofit_columns(writer.sheets[SHEET_NAME], df)

        except Exception as exc:
            raise SinkWriteError(output_path=output_path, reason=str(exc)) from exc

        log.info("Stock price data written", output_path=str(output_path))
        return output_path

    @staticmethod
    def _autofit_columns(worksheet, df: pd.DataFrame) -> None:
        """Size each column to its longest value (cosmetic)."""
        for position, column in enumerate(df.columns, start=1):
            longest = max([len(column), *(len(value) for value in df[column])])
            worksheet.column_dimensions[get_column_letter(position)].width = longest + 2
