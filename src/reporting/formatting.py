"""French number formatting shared by tables, narratives and charts."""
from __future__ import annotations

# fr-FR groups thousands with a narrow no-break space
THOUSANDS_SEPARATOR = "\u202f"


def format_number(value: int | float) -> str:
    """Return *value* as a French-formatted integer (``12 345``)."""
    return f"{round(value):,}".replace(",", THOUSANDS_SEPARATOR)


def format_percent(value: float, decimals: int = 1) -> str:
    """Return *value* (already in percent) with a comma decimal: ``30,0%``."""
    return f"{value:.{decimals}f}".replace(".", ",") + "%"


def share(value: int | float, total: int | float) -> float:
    """Return *value* as a percentage of *total* (0 when *total* is 0)."""
    if not total:
        return 0.0
    return value / total * 100
