from sales_analytics.engine import (
    aggregate,
    analyze,
    calculate_bonus,
    calculate_line_revenue,
    rank,
    validate_input,
)
from sales_analytics.errors import (
    AnalyticsError,
    InvalidInputError,
    SchemaMismatchError,
    ValidationError,
)
from sales_analytics.models import AnalysisOptions, BonusRates, RankedSeller, SellerStat

__all__ = [
    "AnalysisOptions",
    "AnalyticsError",
    "BonusRates",
    "InvalidInputError",
    "RankedSeller",
    "SchemaMismatchError",
    "SellerStat",
    "ValidationError",
    "aggregate",
    "analyze",
    "calculate_bonus",
    "calculate_line_revenue",
    "rank",
    "validate_input",
]
