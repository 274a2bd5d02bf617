"""Mapping between Transaction and its persisted document body."""
from collections.abc import Mapping
from typing import Any, Dict, Optional

from fintrack.amounts import amount_of, entries_of, label_of
from fintrack.domain import Amount, Transaction


def _dump_stored(stored: Any) -> Any:
    if isinstance(stored, Amount):
        return {"amount": stored.amount, "label": stored.label}
    return stored


def _load_stored(stored: Any) -> Any:
    if isinstance(stored, Mapping):
        return Amount(amount=amount_of(stored), label=label_of(stored, ""))
    # legacy bare number
    return amount_of(stored)


def _dump_side(side: Mapping) -> Dict[str, list]:
    return {cat: [_dump_stored(s) for s in entries] for cat, entries in side.items()}


def _load_side(side: Any) -> Dict[str, tuple]:
    if not isinstance(side, Mapping):
        return {}
    return {cat: tuple(_load_stored(s) for s in entries_of(v)) for cat, v in side.items()}


def to_document(t: Transaction) -> Dict[str, Any]:
    body = {
        "date": t.date,
        "incomes": _dump_side(t.incomes),
        "expenses": _dump_side(t.expenses),
        "totalIncome": t.total_income,
        "totalExpense": t.total_expense,
        "updatedAt": t.updated_at,
    }
    if t.created_at is not None:
        body["createdAt"] = t.created_at
    return body


def from_document(doc_id: Optional[str], body: Mapping) -> Transaction:
    return Transaction(
        id=doc_id,
        date=str(body.get("date", "")),
        incomes=_load_side(body.get("incomes")),
        expenses=_load_side(body.get("expenses")),
        total_income=amount_of(body.get("totalIncome")),
        total_expense=amount_of(body.get("totalExpense")),
        created_at=body.get("createdAt"),
        updated_at=body.get("updatedAt"),
    )
