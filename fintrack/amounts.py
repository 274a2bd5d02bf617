"""Read access to stored amounts.

Documents written before row labels existed hold a bare number per category;
current documents hold a list of ``{amount, label}`` records. Every reader of
stored values goes through the helpers here instead of branching on shape.
"""
import math
from collections.abc import Mapping
from typing import Any, Tuple

from fintrack.domain import Amount
from fintrack.functional import Maybe, Some, Nothing


def _as_amount(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def amount_of(stored: Any) -> float:
    """Canonical non-negative amount of a stored value of either shape."""
    if isinstance(stored, Amount):
        return _as_amount(stored.amount)
    if isinstance(stored, Mapping):
        return _as_amount(stored.get("amount"))
    return _as_amount(stored)


def label_of(stored: Any, fallback: str) -> str:
    if isinstance(stored, Amount):
        label = stored.label
    elif isinstance(stored, Mapping):
        label = stored.get("label")
    else:
        label = None
    if isinstance(label, str) and label:
        return label
    return fallback


def entries_of(value: Any) -> Tuple[Any, ...]:
    """Stored entries of one category: a list, or a legacy bare value."""
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return (value,)


def parse_amount(text: Any) -> Maybe[float]:
    """Parse raw row text; anything unparseable is Nothing, never an error."""
    if text is None or isinstance(text, bool):
        return Nothing()
    try:
        number = float(str(text).strip())
    except ValueError:
        return Nothing()
    if not math.isfinite(number):
        return Nothing()
    return Some(number)


def to_text(amount: float) -> str:
    """Editable text for an amount: 40000.0 -> "40000", 12.5 -> "12.5"."""
    if float(amount).is_integer():
        return str(int(amount))
    return repr(float(amount))
