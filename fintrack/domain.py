from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class Amount:
    amount: float
    label: str = ""


# legacy documents store a bare number, current ones an Amount record
StoredAmount = Union[float, int, Amount]


@dataclass(frozen=True)
class CategoryRow:
    id: str          # unique within one edit session, never persisted
    value: str = ""  # raw text as typed
    label: str = ""


CategoryInputModel = Dict[str, Tuple[CategoryRow, ...]]


@dataclass(frozen=True)
class Transaction:
    date: str                                   # "YYYY-MM-DD"
    incomes: Dict[str, Tuple[StoredAmount, ...]] = field(default_factory=dict)
    expenses: Dict[str, Tuple[StoredAmount, ...]] = field(default_factory=dict)
    total_income: float = 0.0
    total_expense: float = 0.0
    created_at: Optional[str] = None            # ISO-8601, set once on create
    updated_at: Optional[str] = None
    id: Optional[str] = None                    # assigned by the store


@dataclass(frozen=True)
class DateRange:
    start: str
    end: str


@dataclass(frozen=True)
class TrendPoint:
    label: int       # day of month
    income: float
    expense: float


@dataclass(frozen=True)
class CategorySlice:
    category: str
    value: float


@dataclass(frozen=True)
class BreakdownLine:
    label: str
    amount: float


@dataclass(frozen=True)
class DashboardView:
    transactions: Tuple[Transaction, ...]  # filtered, most recent first
    total_income: float
    total_expense: float
    balance: float
    trend: Tuple[TrendPoint, ...]
    breakdown: Tuple[CategorySlice, ...]
