"""Field extraction strategies and the pipeline that chains them."""

from price_monitor.tracker.extractors.base import FieldStrategy, first_result
from price_monitor.tracker.extractors.pipeline import DEFAULT_NAME, ExtractionPipeline

__all__ = ["DEFAULT_NAME", "ExtractionPipeline", "FieldStrategy", "first_result"]
