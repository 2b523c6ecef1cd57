"""Price tracking engine.

Extracts product data from store pages, keeps each item's price history and
refreshes monitored items on demand or on a periodic wake.
"""

from price_monitor.tracker.cancellation import CancellationToken
from price_monitor.tracker.extractors import ExtractionPipeline
from price_monitor.tracker.history import append_price, percent_change, register
from price_monitor.tracker.orchestrator import RefreshOrchestrator
from price_monitor.tracker.parser import parse_price
from price_monitor.tracker.repository import ItemRepository

__all__ = [
    "CancellationToken",
    "ExtractionPipeline",
    "ItemRepository",
    "RefreshOrchestrator",
    "append_price",
    "parse_price",
    "percent_change",
    "register",
]
