from calendar import monthrange
from collections.abc import Mapping
from datetime import date
from typing import Callable, Dict, Iterable, Iterator, Tuple

from fintrack.amounts import amount_of, entries_of, label_of
from fintrack.config import LABELED_CATEGORY, TREND_LIMIT
from fintrack.domain import (
    BreakdownLine,
    CategorySlice,
    DashboardView,
    DateRange,
    Transaction,
    TrendPoint,
)


def month_bounds(today: date) -> DateRange:
    last_day = monthrange(today.year, today.month)[1]
    return DateRange(
        start=today.replace(day=1).isoformat(),
        end=today.replace(day=last_day).isoformat(),
    )


def by_date_range(start: str, end: str) -> Callable[[Transaction], bool]:
    def _filter(t: Transaction) -> bool:
        return start <= t.date <= end

    return _filter


def iter_transactions(
    trans: Iterable[Transaction], pred: Callable[[Transaction], bool]
) -> Iterator[Transaction]:
    for t in trans:
        if pred(t):
            yield t


def most_recent_first(trans: Iterable[Transaction]) -> Tuple[Transaction, ...]:
    # stable: same-date transactions keep their incoming order
    return tuple(sorted(trans, key=lambda t: t.date, reverse=True))


def trend_series(recent_first: Tuple[Transaction, ...], limit: int = TREND_LIMIT) -> Tuple[TrendPoint, ...]:
    window = reversed(recent_first[:limit])
    return tuple(
        TrendPoint(
            label=date.fromisoformat(t.date).day,
            income=t.total_income,
            expense=t.total_expense,
        )
        for t in window
    )


def category_breakdown(trans: Iterable[Transaction]) -> Tuple[CategorySlice, ...]:
    totals: Dict[str, float] = {}
    for t in trans:
        for category, values in (t.expenses or {}).items():
            spent = sum(amount_of(v) for v in entries_of(values))
            totals[category] = totals.get(category, 0.0) + spent
    return tuple(CategorySlice(category=c, value=v) for c, v in totals.items() if v > 0)


def aggregate(transactions: Iterable[Transaction], date_range: DateRange) -> DashboardView:
    filtered = most_recent_first(
        iter_transactions(transactions, by_date_range(date_range.start, date_range.end))
    )
    total_income = sum(t.total_income for t in filtered)
    total_expense = sum(t.total_expense for t in filtered)
    return DashboardView(
        transactions=filtered,
        total_income=total_income,
        total_expense=total_expense,
        balance=total_income - total_expense,
        trend=trend_series(filtered),
        breakdown=category_breakdown(filtered),
    )


def net_of(t: Transaction) -> float:
    return t.total_income - t.total_expense


def transaction_breakdown(side: Mapping) -> Tuple[BreakdownLine, ...]:
    """Detail lines for one side of a transaction, as shown when a row is expanded.

    Rows of the labeled category show their own description; other categories
    show the category name, numbered when it holds more than one entry.
    """
    lines = []
    for category, values in (side or {}).items():
        items = entries_of(values)
        for idx, item in enumerate(items, start=1):
            if category == LABELED_CATEGORY:
                text = label_of(item, category)
            elif len(items) > 1:
                text = f"{category} ({idx})"
            else:
                text = category
            lines.append(BreakdownLine(label=text, amount=amount_of(item)))
    return tuple(lines)
