# number_format.py
from decimal import Decimal
from typing import Optional

from sync_model import Height

NOT_AVAILABLE = "N/A"

# ANSI codes used across the report
RED = "31"
GREEN = "32"
YELLOW = "33"
BLUE = "34"
PURPLE = "35"
CYAN = "36"


def color(text: str, code: str, enabled: bool = True) -> str:
    if not enabled:
        return text
    return f"\033[{code}m{text}\033[0m"


def format_number(value: Height) -> str:
    """1234567 -> '1,234,567'; unknown heights render as N/A."""
    if value is None:
        return NOT_AVAILABLE
    return f"{value:,}"


def calculate_percentage(local: Height, remote: Height) -> Optional[Decimal]:
    """
    local * 100 / remote, truncated (not rounded) to two decimal places.

    Returns None when either side is unknown or remote is 0.
    """
    if local is None or remote is None or remote == 0:
        return None
    hundredths = local * 10000 // remote
    return Decimal(hundredths).scaleb(-2)


def format_percentage(value: Optional[Decimal]) -> str:
    if value is None:
        return NOT_AVAILABLE
    return f"{value:.2f}"
