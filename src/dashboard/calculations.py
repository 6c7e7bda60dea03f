"""Pure KPI arithmetic used by the dashboard aggregator.

No I/O here. Rounding is half-up on exact decimals so results do not
depend on binary float artefacts.
"""

from collections.abc import Sequence
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import TypeVar

# Indexed by day of week with Sunday = 0.
WEEKDAY_LABELS: tuple[str, ...] = ("CN", "T2", "T3", "T4", "T5", "T6", "T7")

RANKING_SIZE = 3

T = TypeVar("T")


def round_half_up(value: Decimal | int, places: int = 1) -> Decimal:
    """Round ``value`` to ``places`` decimals, halves away from zero."""
    quantum = Decimal(1).scaleb(-places)
    return Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)


def conversion_rate(lead_count: int, order_count: int) -> float:
    """Orders per lead as a percentage, one decimal. 0 when there are no leads."""
    if lead_count <= 0:
        return 0.0
    rate = Decimal(order_count) * 100 / Decimal(lead_count)
    return float(round_half_up(rate, 1))


def progress_percent(revenue: Decimal, target: Decimal) -> int:
    """Revenue as a whole percentage of ``target``, capped at 100."""
    if target <= 0:
        return 100 if revenue > 0 else 0
    pct = round_half_up(revenue * 100 / target, 0)
    return int(min(Decimal(100), max(Decimal(0), pct)))


def cskh_count(order_count: int) -> int:
    """Customer-service follow-ups estimated as half the orders, floored."""
    return order_count // 2


def total_revenue(amounts: Sequence[Decimal | None]) -> Decimal:
    """Sum of order amounts; missing amounts count as zero."""
    return sum((a for a in amounts if a is not None), Decimal(0))


def moving_averages(values: Sequence[int], window: int) -> list[float]:
    """Trailing simple moving average, one decimal.

    The window is clipped at the start of the series, so the first point
    averages only itself.
    """
    if window < 1:
        raise ValueError(f"window must be >= 1, got {window}")
    result: list[float] = []
    for i in range(len(values)):
        chunk = values[max(0, i - window + 1): i + 1]
        avg = Decimal(sum(chunk)) / Decimal(len(chunk))
        result.append(float(round_half_up(avg, 1)))
    return result


def weekday_label(day: date) -> str:
    """Vietnamese short weekday name (CN = Sunday, T2 = Monday ...)."""
    # date.weekday() is Monday = 0
    return WEEKDAY_LABELS[(day.weekday() + 1) % 7]


def split_ranking(ordered: Sequence[T], size: int = RANKING_SIZE) -> tuple[list[T], list[T]]:
    """Head and reversed tail of an already ranked sequence.

    The two slices overlap when ``len(ordered) < 2 * size``.
    """
    top = list(ordered[:size])
    bottom = list(ordered[-size:])[::-1] if size > 0 else []
    return top, bottom
