from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from fintrack.amounts import parse_amount
from fintrack.domain import Amount, CategoryInputModel, CategoryRow, Transaction
from fintrack.errors import EmptyTransactionError
from fintrack.functional import Either, Left, Maybe, Right


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def row_amount(row: CategoryRow) -> Maybe[Amount]:
    return (
        parse_amount(row.value)
        .filter(lambda a: a > 0)
        .map(lambda a: Amount(amount=a, label=row.label or ""))
    )


def process_side(model: CategoryInputModel) -> Tuple[Dict[str, Tuple[Amount, ...]], float]:
    """Keep positive rows per category; categories left empty are dropped."""
    side: Dict[str, Tuple[Amount, ...]] = {}
    total = 0.0
    for category, rows in model.items():
        kept = tuple(
            m.get_or_else(None) for m in map(row_amount, rows) if m.is_some()
        )
        if kept:
            side[category] = kept
            total += sum(a.amount for a in kept)
    return side, total


def build_transaction(
    date: str,
    income_model: CategoryInputModel,
    expense_model: CategoryInputModel,
    is_edit: bool = False,
    now: Optional[str] = None,
) -> Either[EmptyTransactionError, Transaction]:
    """Turn both entry forms into a Transaction ready to persist.

    On edit ``created_at`` is left unset; the stored value is carried over by
    the store's partial update.
    """
    incomes, total_income = process_side(income_model)
    expenses, total_expense = process_side(expense_model)
    if total_income == 0 and total_expense == 0:
        return Left(EmptyTransactionError())

    stamp = now or utc_now_iso()
    return Right(
        Transaction(
            date=date,
            incomes=incomes,
            expenses=expenses,
            total_income=total_income,
            total_expense=total_expense,
            created_at=None if is_edit else stamp,
            updated_at=stamp,
        )
    )
