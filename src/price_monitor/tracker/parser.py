"""Price text normalization for pt-BR formatted amounts."""

import logging
import math
import re

__all__ = ["format_price", "parse_machine_price", "parse_price"]

logger = logging.getLogger(__name__)

# Everything that is not part of a number: currency symbols, codes, NBSP, words.
_NON_NUMERIC_RE = re.compile(r"[^\d.,\-]")


def _positive_or_zero(value: float) -> float:
    if math.isnan(value) or math.isinf(value) or value <= 0:
        return 0.0
    return value


def parse_price(text: str | None) -> float:
    """Parse a locale-formatted price such as ``"R$ 1.299,90"``.

    ``.`` is a thousands separator and ``,`` the decimal marker. Returns ``0.0``
    when the text holds no usable positive amount.
    """
    if not text:
        return 0.0

    cleaned = _NON_NUMERIC_RE.sub("", text.strip())
    cleaned = cleaned.replace(".", "").replace(",", ".")
    try:
        value = float(cleaned)
    except ValueError:
        logger.debug("Could not parse price text: %r", text)
        return 0.0
    return _positive_or_zero(value)


def parse_machine_price(value: object) -> float:
    """Parse an already machine-formatted amount (``"129.90"`` or ``129.9``)."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        parsed = float(str(value).strip())
    except ValueError:
        return 0.0
    return _positive_or_zero(parsed)


def format_price(value: float) -> str:
    """Render a price the way the store displays it: ``1299.9`` -> ``"1.299,90"``."""
    formatted = f"{value:,.2f}"
    return formatted.replace(",", "_").replace(".", ",").replace("_", ".")
