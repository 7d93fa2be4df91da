"""Quote source definitions.

A provider is pure data: where to load a symbol's quote page and which
locators may hold the last traded price on that page. The resolver walks
``DEFAULT_PROVIDERS`` in order, so the table below is also the fallback
chain.

Page markup at these sites changes between deployments and regions, which
is why each provider carries several candidate locators, tried in order.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Provider(BaseModel):
    """A price-quote data source.

    Attributes:
        name: Human-readable source name used in logs and the run summary.
        url_template: Quote page URL with a ``{symbol}`` placeholder.
        symbol_case: Case transform applied to the symbol before substitution.
        locators: CSS selectors for the price element, in priority order.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    url_template: str = Field(..., min_length=1)
    symbol_case: Literal["upper", "lower"]
    locators: tuple[str, ...] = Field(..., min_length=1)

    @field_validator("url_template")
    @classmethod
    def require_placeholder(cls, value: str) -> str:
        """The template must substitute the symbol somewhere."""
        if "{symbol}" not in value:
            raise ValueError("url_template must contain a '{symbol}' placeholder")
        return value

    def build_url(self, symbol: str) -> str:
        """Return the quote page URL for ``symbol``."""
        cased = symbol.upper() if self.symbol_case == "upper" else symbol.lower()
        return self.url_template.format(symbol=cased)


NSE_INDIA = Provider(
    name="NSE India",
    url_template="https://www.nseindia.com/get-quotes/equity?symbol={symbol}",
    symbol_case="upper",
    locators=(
        "#quoteLtp",
        ".trading_price",
        ".overview-eq .equity-price",
        "span[id*='ltp']",
        ".equity-ltp",
        "#priceInfoData span[id*='ltp']",
    ),
)

MONEYCONTROL = Provider(
    name="MoneyControl",
    url_template="https://www.moneycontrol.com/india/stockpricequote/{symbol}",
    symbol_case="lower",
    locators=(
        "#Bse_Prc_tick .span_price_wrap",
        "#nsecp",
        ".inprice1",
        ".price_overview .span_price_wrap",
        "div[id*='price'] .span_price_wrap",
        ".overview .inprice",
        ".stockprc",
    ),
)

BSE_INDIA = Provider(
    name="BSE India",
    url_template="https://www.bseindia.com/stock-share-price/{symbol}/",
    symbol_case="lower",
    locators=(
        ".curr-price",
        ".stock-price",
        ".price-current",
        "span[id*='price']",
    ),
)

# Primary, secondary fallback, tertiary fallback.
DEFAULT_PROVIDERS: tuple[Provider, ...] = (NSE_INDIA, MONEYCONTROL, BSE_INDIA)
