"""Test suite for Quote Harvester.

Hermetic pytest tests mirroring the quote_harvester/ package layout.
Playwright is mocked and quote pages are served by an in-memory fake
session, so no test touches the network or waits on real delays.
"""
