from fintrack.documents import from_document, to_document
from fintrack.domain import Amount, Transaction


def test_to_document_shape():
    t = Transaction(
        date="2024-03-20",
        incomes={},
        expenses={"Others": (Amount(2000.0, "Gift"),)},
        total_income=0,
        total_expense=2000.0,
        created_at="2024-03-20T10:00:00.000Z",
        updated_at="2024-03-20T10:00:00.000Z",
    )

    assert to_document(t) == {
        "date": "2024-03-20",
        "incomes": {},
        "expenses": {"Others": [{"amount": 2000.0, "label": "Gift"}]},
        "totalIncome": 0,
        "totalExpense": 2000.0,
        "createdAt": "2024-03-20T10:00:00.000Z",
        "updatedAt": "2024-03-20T10:00:00.000Z",
    }


def test_to_document_omits_missing_created_at():
    t = Transaction(date="2024-03-20", total_income=1, updated_at="x")
    assert "createdAt" not in to_document(t)


def test_from_document_current_shape():
    t = from_document("abc", {
        "date": "2024-03-20",
        "incomes": {"Salary": [{"amount": 50000, "label": ""}]},
        "expenses": {},
        "totalIncome": 50000,
        "totalExpense": 0,
        "createdAt": "c",
        "updatedAt": "u",
    })

    assert t.id == "abc"
    assert t.incomes == {"Salary": (Amount(50000.0, ""),)}
    assert t.total_income == 50000
    assert t.created_at == "c"
    assert t.updated_at == "u"


def test_from_document_legacy_shapes():
    t = from_document("old", {
        "date": "2023-11-01",
        "incomes": {"Salary": 40000},
        "expenses": {"Rent": {"amount": 12000, "label": ""}},
        "totalIncome": 40000,
        "totalExpense": 12000,
    })

    assert t.incomes == {"Salary": (40000.0,)}
    assert t.expenses == {"Rent": (Amount(12000.0, ""),)}
    assert t.created_at is None


def test_from_document_tolerates_missing_sides():
    t = from_document("x", {"date": "2024-01-01", "totalIncome": "oops"})

    assert t.incomes == {}
    assert t.expenses == {}
    assert t.total_income == 0
