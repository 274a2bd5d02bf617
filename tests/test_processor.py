from fintrack.config import EXPENSE_CATEGORIES, INCOME_CATEGORIES
from fintrack.domain import Amount
from fintrack.errors import EmptyTransactionError
from fintrack.inputs import add_row, initial_state, set_field
from fintrack.processor import build_transaction, process_side

NOW = "2024-03-20T10:00:00.000Z"


def fill(model, category, *values):
    """Set the category's rows to the given (value, label) pairs."""
    for _ in range(len(values) - len(model[category])):
        model = add_row(model, category)
    for row, (value, label) in zip(model[category], values):
        model = set_field(model, category, row.id, "value", value)
        model = set_field(model, category, row.id, "label", label)
    return model


def test_build_transaction_sums_and_strips():
    incomes = fill(initial_state(INCOME_CATEGORIES), "Salary", ("50000", ""))
    expenses = fill(initial_state(EXPENSE_CATEGORIES), "Rent", ("15000", ""))
    expenses = fill(expenses, "Others", ("2000", "Gift"), ("", "blank"))

    result = build_transaction("2024-03-20", incomes, expenses, now=NOW)

    assert result.is_right()
    t = result.unwrap()
    assert t.date == "2024-03-20"
    assert t.incomes == {"Salary": (Amount(50000.0, ""),)}
    assert t.expenses == {"Rent": (Amount(15000.0, ""),), "Others": (Amount(2000.0, "Gift"),)}
    assert t.total_income == 50000
    assert t.total_expense == 17000
    assert t.created_at == NOW
    assert t.updated_at == NOW
    assert t.id is None


def test_non_positive_and_unparseable_rows_are_dropped():
    expenses = fill(
        initial_state(EXPENSE_CATEGORIES), "Bill",
        ("0", ""), ("-10", ""), ("abc", ""), ("120.5", "water"),
    )

    side, total = process_side(expenses)

    assert side == {"Bill": (Amount(120.5, "water"),)}
    assert total == 120.5
    assert all(a.amount > 0 for rows in side.values() for a in rows)
    assert all(rows for rows in side.values())


def test_all_empty_submission_is_rejected():
    result = build_transaction(
        "2024-03-20", initial_state(INCOME_CATEGORIES), initial_state(EXPENSE_CATEGORIES)
    )

    assert result.is_left()
    assert isinstance(result.get_error(), EmptyTransactionError)


def test_only_zero_rows_is_rejected():
    incomes = fill(initial_state(INCOME_CATEGORIES), "Salary", ("0", ""), ("abc", ""))

    result = build_transaction("2024-03-20", incomes, initial_state(EXPENSE_CATEGORIES))

    assert result.is_left()


def test_edit_leaves_created_at_unset():
    incomes = fill(initial_state(INCOME_CATEGORIES), "Salary", ("100", ""))

    t = build_transaction("2024-03-20", incomes, initial_state(EXPENSE_CATEGORIES), is_edit=True, now=NOW).unwrap()

    assert t.created_at is None
    assert t.updated_at == NOW


def test_default_timestamp_is_iso_utc():
    incomes = fill(initial_state(INCOME_CATEGORIES), "Salary", ("100", ""))

    t = build_transaction("2024-03-20", incomes, initial_state(EXPENSE_CATEGORIES)).unwrap()

    assert t.created_at == t.updated_at
    assert t.updated_at.endswith("Z")
    assert "T" in t.updated_at
