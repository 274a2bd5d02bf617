"""Editable income/expense entry state.

A model maps each category to a tuple of rows. Every operation returns a new
mapping and never touches the one it was given; only the edited category's
tuple is rebuilt.
"""
from dataclasses import replace
from typing import Iterable
from uuid import uuid4

from fintrack.domain import CategoryInputModel, CategoryRow

EDITABLE_FIELDS = ("value", "label")


def fresh_id() -> str:
    return uuid4().hex


def empty_row() -> CategoryRow:
    return CategoryRow(id=fresh_id())


def initial_state(categories: Iterable[str]) -> CategoryInputModel:
    return {cat: (empty_row(),) for cat in categories}


def add_row(model: CategoryInputModel, category: str) -> CategoryInputModel:
    return {**model, category: model.get(category, ()) + (empty_row(),)}


def remove_row(model: CategoryInputModel, category: str, row_id: str) -> CategoryInputModel:
    rows = model.get(category, ())
    if len(rows) <= 1:
        return model
    return {**model, category: tuple(r for r in rows if r.id != row_id)}


def set_field(
    model: CategoryInputModel, category: str, row_id: str, field: str, value: str
) -> CategoryInputModel:
    if field not in EDITABLE_FIELDS:
        raise ValueError(f"Unknown row field: {field}")
    rows = model.get(category, ())
    updated = tuple(replace(r, **{field: value}) if r.id == row_id else r for r in rows)
    return {**model, category: updated}
