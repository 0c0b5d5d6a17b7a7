"""
Canonical fundamentals field table.

One row per metric: the group it belongs to, its wire name, the provider
sources to try in order (first non-null wins), and whether the free tier
may see it. The pro view is the whole table; the free view is the same
record with non-free fields blanked.

Sources:
    ratios     FMP ratios-ttm
    metrics    FMP key-metrics (latest)
    income     FMP income-statement (latest)
    balance    FMP balance-sheet-statement (latest)
    cash_flow  FMP cash-flow-statement (latest)
    growth     FMP financial-growth (latest)
"""

from dataclasses import dataclass

RATIOS = "ratios"
METRICS = "metrics"
INCOME = "income"
BALANCE = "balance"
CASH_FLOW = "cash_flow"
GROWTH = "growth"

FREE_SOURCES = (RATIOS, METRICS, INCOME, BALANCE)
PRO_SOURCES = (RATIOS, METRICS, INCOME, BALANCE, CASH_FLOW, GROWTH)

GROUPS = (
    "valuation",
    "profitability",
    "growth",
    "income_statement",
    "balance_sheet",
    "cash_flow",
    "leverage",
    "efficiency",
    "per_share",
)


@dataclass(frozen=True)
class FieldSpec:
    group: str
    name: str
    sources: tuple[tuple[str, str], ...]
    free: bool = False


def _f(group: str, name: str, *sources: tuple[str, str], free: bool = False) -> FieldSpec:
    return FieldSpec(group=group, name=name, sources=tuple(sources), free=free)


FIELDS: tuple[FieldSpec, ...] = (
    # Valuation
    _f("valuation", "peRatio", (RATIOS, "peRatioTTM"), (METRICS, "peRatio"), free=True),
    _f("valuation", "forwardPE"),
    _f("valuation", "pegRatio", (RATIOS, "pegRatioTTM")),
    _f("valuation", "pbRatio", (RATIOS, "priceToBookRatioTTM"), (METRICS, "pbRatio"), free=True),
    _f(
        "valuation",
        "psRatio",
        (RATIOS, "priceToSalesRatioTTM"),
        (METRICS, "priceToSalesRatio"),
        free=True,
    ),
    _f(
        "valuation",
        "evToEbitda",
        (RATIOS, "enterpriseValueOverEBITDATTM"),
        (METRICS, "enterpriseValueOverEBITDA"),
        free=True,
    ),
    _f(
        "valuation",
        "evToRevenue",
        (RATIOS, "enterpriseValueOverRevenueTTM"),
        (METRICS, "evToSales"),
    ),
    _f("valuation", "evToFcf", (METRICS, "evToFreeCashFlow")),
    _f("valuation", "priceToFcf", (RATIOS, "priceToFreeCashFlowsRatioTTM"), (METRICS, "pfcfRatio")),
    _f("valuation", "enterpriseValue", (METRICS, "enterpriseValue"), free=True),
    # Profitability
    _f(
        "profitability",
        "grossMargin",
        (RATIOS, "grossProfitMarginTTM"),
        (INCOME, "grossProfitRatio"),
        free=True,
    ),
    _f(
        "profitability",
        "operatingMargin",
        (RATIOS, "operatingProfitMarginTTM"),
        (INCOME, "operatingIncomeRatio"),
        free=True,
    ),
    _f("profitability", "ebitdaMargin", (INCOME, "ebitdaratio")),
    _f(
        "profitability",
        "netMargin",
        (RATIOS, "netProfitMarginTTM"),
        (INCOME, "netIncomeRatio"),
        free=True,
    ),
    _f("profitability", "roe", (RATIOS, "returnOnEquityTTM"), (METRICS, "roe"), free=True),
    _f("profitability", "roa", (RATIOS, "returnOnAssetsTTM"), free=True),
    _f("profitability", "roic", (METRICS, "roic")),
    _f("profitability", "roce", (RATIOS, "returnOnCapitalEmployedTTM")),
    # Growth
    _f("growth", "revenueGrowthYoy", (GROWTH, "revenueGrowth"), free=True),
    _f("growth", "revenueGrowth3Y", (GROWTH, "threeYRevenueGrowthPerShare")),
    _f("growth", "revenueGrowth5Y", (GROWTH, "fiveYRevenueGrowthPerShare")),
    _f("growth", "revenueGrowthQoQ"),
    _f("growth", "epsGrowthYoy", (GROWTH, "epsgrowth"), free=True),
    _f("growth", "epsGrowth3Y", (GROWTH, "threeYNetIncomeGrowthPerShare")),
    _f("growth", "epsGrowth5Y", (GROWTH, "fiveYNetIncomeGrowthPerShare")),
    _f("growth", "epsGrowthQoQ"),
    _f("growth", "fcfGrowthYoy", (GROWTH, "freeCashFlowGrowth")),
    _f("growth", "fcfGrowth3Y", (GROWTH, "threeYOperatingCFGrowthPerShare")),
    # Income statement
    _f("income_statement", "revenue", (INCOME, "revenue"), free=True),
    _f("income_statement", "costOfRevenue", (INCOME, "costOfRevenue")),
    _f("income_statement", "grossProfit", (INCOME, "grossProfit")),
    _f("income_statement", "operatingExpenses", (INCOME, "operatingExpenses")),
    _f("income_statement", "researchAndDevelopment", (INCOME, "researchAndDevelopmentExpenses")),
    _f(
        "income_statement",
        "sellingGeneralAdmin",
        (INCOME, "sellingGeneralAndAdministrativeExpenses"),
    ),
    _f("income_statement", "operatingIncome", (INCOME, "operatingIncome")),
    _f("income_statement", "ebitda", (INCOME, "ebitda")),
    _f("income_statement", "interestExpense", (INCOME, "interestExpense")),
    _f("income_statement", "taxExpense", (INCOME, "incomeTaxExpense")),
    _f("income_statement", "netIncome", (INCOME, "netIncome"), free=True),
    _f("income_statement", "eps", (INCOME, "eps"), free=True),
    _f("income_statement", "epsDiluted", (INCOME, "epsdiluted")),
    # Balance sheet
    _f("balance_sheet", "totalAssets", (BALANCE, "totalAssets"), free=True),
    _f("balance_sheet", "totalLiabilities", (BALANCE, "totalLiabilities")),
    _f(
        "balance_sheet",
        "totalEquity",
        (BALANCE, "totalEquity"),
        (BALANCE, "totalStockholdersEquity"),
    ),
    _f("balance_sheet", "cash", (BALANCE, "cashAndCashEquivalents"), free=True),
    _f("balance_sheet", "shortTermInvestments", (BALANCE, "shortTermInvestments")),
    _f("balance_sheet", "cashAndEquivalents", (BALANCE, "cashAndShortTermInvestments")),
    _f("balance_sheet", "accountsReceivable", (BALANCE, "netReceivables")),
    _f("balance_sheet", "inventory", (BALANCE, "inventory")),
    _f("balance_sheet", "currentAssets", (BALANCE, "totalCurrentAssets")),
    _f("balance_sheet", "propertyPlantEquipment", (BALANCE, "propertyPlantEquipmentNet")),
    _f("balance_sheet", "goodwill", (BALANCE, "goodwill")),
    _f("balance_sheet", "intangibleAssets", (BALANCE, "intangibleAssets")),
    _f("balance_sheet", "accountsPayable", (BALANCE, "accountPayables")),
    _f("balance_sheet", "shortTermDebt", (BALANCE, "shortTermDebt")),
    _f("balance_sheet", "currentLiabilities", (BALANCE, "totalCurrentLiabilities")),
    _f("balance_sheet", "longTermDebt", (BALANCE, "longTermDebt")),
    _f("balance_sheet", "totalDebt", (BALANCE, "totalDebt"), free=True),
    _f("balance_sheet", "netDebt", (BALANCE, "netDebt")),
    _f("balance_sheet", "retainedEarnings", (BALANCE, "retainedEarnings")),
    # Cash flow
    _f(
        "cash_flow",
        "operatingCashFlow",
        (CASH_FLOW, "operatingCashFlow"),
        (CASH_FLOW, "netCashProvidedByOperatingActivities"),
    ),
    _f(
        "cash_flow",
        "capitalExpenditures",
        (CASH_FLOW, "capitalExpenditure"),
        (CASH_FLOW, "investmentsInPropertyPlantAndEquipment"),
    ),
    _f("cash_flow", "freeCashFlow", (CASH_FLOW, "freeCashFlow")),
    _f("cash_flow", "dividendsPaid", (CASH_FLOW, "dividendsPaid")),
    _f("cash_flow", "shareRepurchases", (CASH_FLOW, "commonStockRepurchased")),
    _f("cash_flow", "acquisitions", (CASH_FLOW, "acquisitionsNet")),
    _f("cash_flow", "investingCashFlow", (CASH_FLOW, "netCashUsedForInvestingActivites")),
    _f(
        "cash_flow",
        "financingCashFlow",
        (CASH_FLOW, "netCashUsedProvidedByFinancingActivities"),
    ),
    _f("cash_flow", "netChangeInCash", (CASH_FLOW, "netChangeInCash")),
    # Leverage
    _f("leverage", "debtToEquity", (RATIOS, "debtEquityRatioTTM"), (METRICS, "debtToEquity")),
    _f("leverage", "debtToAssets", (RATIOS, "debtRatioTTM"), (METRICS, "debtToAssets")),
    _f("leverage", "debtToEbitda"),
    _f("leverage", "netDebtToEbitda", (METRICS, "netDebtToEBITDA")),
    _f(
        "leverage",
        "interestCoverage",
        (RATIOS, "interestCoverageTTM"),
        (METRICS, "interestCoverage"),
    ),
    _f("leverage", "currentRatio", (RATIOS, "currentRatioTTM"), (METRICS, "currentRatio")),
    _f("leverage", "quickRatio", (RATIOS, "quickRatioTTM")),
    _f("leverage", "cashRatio", (RATIOS, "cashRatioTTM")),
    # Efficiency
    _f("efficiency", "assetTurnover", (RATIOS, "assetTurnoverTTM")),
    _f(
        "efficiency",
        "inventoryTurnover",
        (RATIOS, "inventoryTurnoverTTM"),
        (METRICS, "inventoryTurnover"),
    ),
    _f(
        "efficiency",
        "receivablesTurnover",
        (RATIOS, "receivablesTurnoverTTM"),
        (METRICS, "receivablesTurnover"),
    ),
    _f(
        "efficiency",
        "payablesTurnover",
        (RATIOS, "payablesTurnoverTTM"),
        (METRICS, "payablesTurnover"),
    ),
    _f(
        "efficiency",
        "daysInventory",
        (RATIOS, "daysOfInventoryOutstandingTTM"),
        (METRICS, "daysOfInventoryOnHand"),
    ),
    _f(
        "efficiency",
        "daysReceivables",
        (RATIOS, "daysOfSalesOutstandingTTM"),
        (METRICS, "daysSalesOutstanding"),
    ),
    _f(
        "efficiency",
        "daysPayables",
        (RATIOS, "daysOfPayablesOutstandingTTM"),
        (METRICS, "daysPayablesOutstanding"),
    ),
    _f("efficiency", "cashConversionCycle", (RATIOS, "cashConversionCycleTTM")),
    # Per share
    _f(
        "per_share",
        "bookValue",
        (RATIOS, "bookValuePerShareTTM"),
        (METRICS, "bookValuePerShare"),
    ),
    _f(
        "per_share",
        "tangibleBookValue",
        (RATIOS, "tangibleBookValuePerShareTTM"),
        (METRICS, "tangibleBookValuePerShare"),
    ),
    _f(
        "per_share",
        "revenuePerShare",
        (RATIOS, "revenuePerShareTTM"),
        (METRICS, "revenuePerShare"),
    ),
    _f(
        "per_share",
        "fcfPerShare",
        (RATIOS, "freeCashFlowPerShareTTM"),
        (METRICS, "freeCashFlowPerShare"),
    ),
    _f("per_share", "dividend"),
    _f(
        "per_share",
        "dividendYield",
        (METRICS, "dividendYield"),
        (RATIOS, "dividendYieldTTM"),
        free=True,
    ),
    _f("per_share", "payoutRatio", (METRICS, "payoutRatio"), (RATIOS, "payoutRatioTTM")),
)

FREE_FIELDS = frozenset((spec.group, spec.name) for spec in FIELDS if spec.free)
