"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

MIN_GRADE = 1
MAX_GRADE = 10
# Grades from here on are billed once per year instead of monthly.
YEARLY_FEE_MIN_GRADE = 9
MONTHS_PER_YEAR = 12

DEFAULT_RECENT_TRANSACTIONS = 5
DEFAULT_DEFAULTERS_LIMIT = 10
DEFAULT_CURRENCY_LABEL = "Rs."

# Largest value a DECIMAL(12,2) money column can hold.
MAX_AMOUNT = Decimal("9999999999.99")
