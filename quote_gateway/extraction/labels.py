# Row labels used against the fallback provider's financial tables.
# Matching is a case-insensitive substring test; earlier entries win.

TOTAL_REVENUE = ("Total Revenue",)
COST_OF_REVENUE = ("Cost of Revenue",)
OPERATING_INCOME = ("Operating Income",)
RESEARCH_AND_DEVELOPMENT = ("Research and Development",)
SELLING_GENERAL_ADMIN = ("Sales, General and Admin.",)
NET_INCOME = ("Net Income",)

TOTAL_CASH = ("Total Cash",)
CASH_AND_EQUIVALENTS = ("Cash and Cash Equivalents", "Cash")
SHORT_TERM_INVESTMENTS = ("Short-Term Investments",)
LONG_TERM_DEBT = ("Long-Term Debt",)
CURRENT_DEBT = ("Current Debt", "Short-Term Debt", "Current Portion of Long-Term Debt")

OPERATING_CASH_FLOW = ("Operating Activities",)
CAPITAL_EXPENDITURES = ("Capital Expenditures", "Property, Plant")
