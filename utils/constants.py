APP_NAME = "SpendFlow"
DB_FILE = "spendflow.db"
DEFAULT_CARD_NAME = "Current Account"
DATE_FORMAT = "%Y-%m-%d"
MONTH_FORMAT = "%Y-%m"
EXPORT_DATE_FORMAT = "%d/%m/%Y"
CURRENCY_SYMBOL = "£"

# ── Direct debits ─────────────────────────────────────────────────────────────

FREQUENCIES = ["Weekly", "Monthly", "Quarterly", "Yearly"]
FREQUENCY_MONTHS = {
    "Monthly": 1,
    "Quarterly": 3,
    "Yearly": 12,
}
WEEKLY_INTERVAL_DAYS = 7

STATUS_ACTIVE = "Active"
STATUS_PAUSED = "Paused"
STATUS_CANCELLED = "Cancelled"
STATUSES = [STATUS_ACTIVE, STATUS_PAUSED, STATUS_CANCELLED]

OTHER_CATEGORY = "Other"

# Order matters: reconciliation picks the first partial match.
DIRECT_DEBIT_CATEGORIES = [
    "Credit Card",
    "Entertainment",
    "Utilities",
    "Health & Fitness",
    "Transport",
    "Insurance",
    "Subscriptions",
    "Education",
    "Charity",
    "Mortgage/Rent",
    "Loans",
    "Childcare",
    "Professional Services",
    "Government/Tax",
    "Other",
]

CALENDAR_MONTHS_AHEAD = 12
UPCOMING_PAYMENT_DAYS = 30
UPCOMING_REMINDER_DAYS = 7

# ── Transactions ──────────────────────────────────────────────────────────────

TRANSACTION_CATEGORIES = [
    "Groceries",
    "Food & Drink",
    "Transport",
    "Shopping",
    "Entertainment",
    "Bills",
    "Health",
    "Home",
    "Other",
    "Income",
    "Refund",
    "Transfer",
]

# Legacy labels still present on older transactions.
CATEGORY_ALIASES = {
    "Groceries":     ["🛒 Groceries", "Groceries"],
    "Food & Drink":  ["☕ Food & Drink", "Food & Drink", "Food & Dining"],
    "Transport":     ["🚇 Transport", "Transport"],
    "Shopping":      ["🛍️ Shopping", "Shopping"],
    "Entertainment": ["🎬 Entertainment", "Entertainment"],
    "Bills":         ["📄 Bills", "Bills", "Bills & Utilities"],
    "Health":        ["🏥 Health", "Health", "Healthcare"],
    "Home":          ["🏠 Home", "Home"],
    "Other":         ["💳 Other", "Other"],
    "Income":        ["💰 Income", "Income"],
    "Refund":        ["↩️ Refund", "Refund"],
    "Transfer":      ["🔄 Transfer", "Transfer"],
}

DATE_RANGE_DAYS = {
    "7days": 7,
    "30days": 30,
    "90days": 90,
}

# ── Cards & statements ────────────────────────────────────────────────────────

CREDIT_STATEMENT_DAY = 20      # last day a credit statement is still current
CREDIT_PAYMENT_DUE_DAY = 25    # due on this day of the following month
MINIMUM_PAYMENT_FLOOR = "25"
MINIMUM_PAYMENT_RATE = "0.03"

STATEMENT_EXPORT_HEADER = ["Date", "Description", "Category", "Amount", "Type"]

# ── Import ────────────────────────────────────────────────────────────────────

REQUIRED_IMPORT_HEADERS = ["company", "amount", "frequency", "category", "date"]

INSTRUCTION_PATTERNS = [
    "#", "//", "INSTRUCTIONS", "REFERENCE", "DELETE",
    "Available Categories", "Available Frequencies", "Format Notes",
    "Weekly", "Monthly", "Quarterly", "Yearly",
    "Amount must", "Date must", "Categories must",
    "Company:", "Amount:", "Frequency:", "Category:", "Date:",
    "e.g.", "Example", "Sample", "Template",
]

BINARY_IMPORT_EXTENSIONS = (".numbers",)

KNOWN_MERCHANT_HINTS = [
    "Netflix", "British Gas", "Spotify", "PureGym", "Aviva Insurance", "Vodafone",
]
BEST_EFFORT_CATEGORY_KEYWORDS = [
    "Entertainment", "Utilities", "Insurance", "Health", "Transport", "Subscriptions",
]
BEST_EFFORT_WINDOW_BEFORE = 50
BEST_EFFORT_WINDOW_AFTER = 100

SAMPLE_IMPORT_ROWS = [
    {"company": "Netflix",              "amount": "£12.99",  "frequency": "Monthly", "category": "Entertainment",    "date": "15"},
    {"company": "British Gas",          "amount": "£85.50",  "frequency": "Monthly", "category": "Utilities",        "date": "1"},
    {"company": "Spotify",              "amount": "£9.99",   "frequency": "Monthly", "category": "Entertainment",    "date": "20"},
    {"company": "PureGym",              "amount": "£29.99",  "frequency": "Monthly", "category": "Health & Fitness", "date": "5"},
    {"company": "Aviva Insurance",      "amount": "£45.00",  "frequency": "Monthly", "category": "Insurance",        "date": "10"},
    {"company": "Vodafone",             "amount": "£35.00",  "frequency": "Monthly", "category": "Subscriptions",    "date": "25"},
    {"company": "Nationwide Mortgage",  "amount": "£850.00", "frequency": "Monthly", "category": "Mortgage/Rent",    "date": "1"},
    {"company": "Council Tax",          "amount": "£120.00", "frequency": "Monthly", "category": "Government/Tax",   "date": "1"},
    {"company": "Uber",                 "amount": "£25.00",  "frequency": "Weekly",  "category": "Transport",        "date": "1"},
    {"company": "BUPA",                 "amount": "£65.00",  "frequency": "Monthly", "category": "Health & Fitness", "date": "15"},
    {"company": "Amazon Prime",         "amount": "£8.99",   "frequency": "Monthly", "category": "Subscriptions",    "date": "12"},
    {"company": "Barclays Credit Card", "amount": "£150.00", "frequency": "Monthly", "category": "Credit Card",      "date": "20"},
    {"company": "Nursery Fees",         "amount": "£400.00", "frequency": "Monthly", "category": "Childcare",        "date": "1"},
    {"company": "Oxfam",                "amount": "£15.00",  "frequency": "Monthly", "category": "Charity",          "date": "5"},
    {"company": "University Fees",      "amount": "£200.00", "frequency": "Monthly", "category": "Education",        "date": "1"},
]

SEVERITY_ORDER = {
    "error":   0,
    "warning": 1,
    "info":    2,
}
