import os

from dotenv import load_dotenv

load_dotenv()

INCOME_CATEGORIES = ("Salary", "Investments", "Others")
EXPENSE_CATEGORIES = (
    "EMI",
    "Rent",
    "Maintenance",
    "Credit Card Bill",
    "Utilities",
    "Bill",
    "SIP",
    "Others",
)

# rows in this category carry a free-text description
LABELED_CATEGORY = "Others"

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///fintrack.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "₹")
SESSION_TTL_DAYS = int(os.getenv("SESSION_TTL_DAYS", 30))
MIN_PASSWORD_LENGTH = 6

TREND_LIMIT = 10
CHART_COLORS = ("#2563eb", "#16a34a", "#d97706", "#dc2626", "#7c3aed", "#0891b2")
