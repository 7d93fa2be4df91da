"""Quote Harvester core package.

Components of the price collection pipeline:
- providers: quote sources with their URL shapes and price locators
- browser: Playwright session acquisition and page queries
- extractor: selector probe and the provider fallback resolver
- scraper: batch orchestration over a symbol list
- sources: symbol list readers (CSV/text and Excel)
- reporter: Excel output of collected quotes
- validator: Quote and fetch outcome models, run summary
- logger: structured JSON logging configuration
- exceptions: custom exception hierarchy
"""

__version__ = "1.0.0"
