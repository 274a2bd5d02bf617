from collections.abc import Mapping
from typing import Iterable, Optional

from fintrack.amounts import amount_of, entries_of, label_of, to_text
from fintrack.domain import CategoryInputModel, CategoryRow
from fintrack.inputs import empty_row, fresh_id


def reconstruct(categories: Iterable[str], stored_side: Optional[Mapping]) -> CategoryInputModel:
    """Rebuild an editable model from one side of a stored transaction.

    Output has exactly ``categories`` as keys, each with at least one row.
    Categories not in the vocabulary are ignored.
    """
    stored_side = stored_side or {}
    model: CategoryInputModel = {}
    for cat in categories:
        entries = entries_of(stored_side.get(cat))
        if entries:
            model[cat] = tuple(
                CategoryRow(id=fresh_id(), value=to_text(amount_of(s)), label=label_of(s, ""))
                for s in entries
            )
        else:
            model[cat] = (empty_row(),)
    return model
