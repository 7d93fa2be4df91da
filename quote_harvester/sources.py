"""Symbol list readers.

Two input formats are supported and behave identically apart from parsing:
- CsvSymbolSource: a text or CSV file, one symbol per line
- ExcelSymbolSource: the first sheet of an xlsx workbook, one symbol per row

In both, only the first cell of each row is used. The first row is treated
as a header and skipped when it contains "symbol" in any case. This is a
heuristic: a ticker that itself contains "symbol" in the first row would
be skipped too.
"""

import csv
import io
from pathlib import Path
from typing import Iterable, Protocol

import pandas as pd

from quote_harvester.exceptions import SourceReadError
from quote_harvester.logger import get_logger

log = get_logger(__name__)

HEADER_MARKER = "symbol"
EXCEL_SUFFIXES = {".xlsx", ".xlsm"}


class SymbolSource(Protocol):
    """Anything that can produce the ordered list of symbols for a run."""

    path: Path

    def read(self) -> list[str]: ...


def parse_symbols(first_cells: Iterable[str]) -> list[str]:
    """Turn the first cell of each row into the run's symbol list.

    Args:
        first_cells: First-cell text of every row, in file order.

    Returns:
        Trimmed, non-empty symbols with a detected header row removed.
    """
    symbols: list[str] = []

    for index, cell in enumerate(first_cells):
        value = cell.strip()

        if index == 0 and HEADER_MARKER in value.lower():
            log.debug("Header row skipped", header=value)
            continue

        if value:
            symbols.append(value)

    return symbols


class CsvSymbolSource:
    """Reads symbols from a text or CSV file.

    Cells follow CSV quoting rules, so ``"M&M, Ltd"`` is a single cell.
    Rows may differ in width.

    Attributes:
        path: Location of the file.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def read(self) -> list[str]:
        """Read the file and return its symbols.

        Raises:
            SourceReadError: If the file is missing or cannot be decoded.
        """
        try:
            content = self.path.read_text(encoding="utf-8-sig")
        except FileNotFoundError as exc:
            raise SourceReadError(self.path, "file not found") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceReadError(self.path, str(exc)) from exc

        try:
            rows = list(csv.reader(io.StringIO(content, newline="")))
        except csv.Error as exc:
            raise SourceReadError(self.path, str(exc)) from exc

        symbols = parse_symbols(row[0] if row else "" for row in rows)
        log.info("Symbols loaded", path=str(self.path), count=len(symbols))
        return symbols


class ExcelSymbolSource:
    """Reads symbols from the first column of a workbook's first sheet.

    Attributes:
        path: Location of the workbook.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def read(self) -> list[str]:
        """Read the workbook and return its symbols.

        Raises:
            SourceReadError: If the workbook is missing or unreadable.
        """
        if not self.path.exists():
            raise SourceReadError(self.path, "file not found")

        try:
            df = pd.read_excel(
                self.path,
                sheet_name=0,
                header=None,
                dtype=str,
                engine="openpyxl",
            )
        except Exception as exc:
            raise SourceReadError(self.path, str(exc)) from exc

        if df.empty:
            first_cells: list[str] = []
        else:
            first_cells = df.iloc[:, 0].fillna("").astype(str).tolist()

        symbols = parse_symbols(first_cells)
        log.info("Symbols loaded", path=str(self.path), count=len(symbols))
        return symbols


def symbol_source_for(path: Path | str) -> SymbolSource:
    """Pick the reader matching the file's suffix."""
    path = Path(path)
    if path.suffix.lower() in EXCEL_SUFFIXES:
        return ExcelSymbolSource(path)
    return CsvSymbolSource(path)
