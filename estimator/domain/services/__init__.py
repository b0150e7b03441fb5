"""
Domain Services - Unit price analysis and project-level cost/schedule analytics.
"""

from .catalog_index import CatalogIndexes, CrewCosting, build_indexes
from .unit_price import (
    UnitPriceAnalysis, PricedItem, analyze, analyze_unit_price, price_budget_items,
)
from .earned_value import (
    EarnedValueResult, ItemValuation, SCurvePoint, roll_up_project,
)
from .pareto import ParetoResult, ParetoItem, ClassStats, classify_pareto
from .crashing import (
    CrashingParameters, CrashScenario, CrashingResult, FrontierPoint, simulate_crashing,
)
from .budget_summary import (
    BudgetSummary, PriceDeviation, summarize_budget, detect_price_deviations,
)
from .standard_yields import (
    StandardComparison, MaterialComparison, analyze_standard, compare_to_standard,
)
from .stock_status import (
    MaterialStockStatus, material_stock_status, stock_status_frame,
)

__all__ = [
    'CatalogIndexes',
    'CrewCosting',
    'build_indexes',
    'UnitPriceAnalysis',
    'PricedItem',
    'analyze',
    'analyze_unit_price',
    'price_budget_items',
    'EarnedValueResult',
    'ItemValuation',
    'SCurvePoint',
    'roll_up_project',
    'ParetoResult',
    'ParetoItem',
    'ClassStats',
    'classify_pareto',
    'CrashingParameters',
    'CrashScenario',
    'CrashingResult',
    'FrontierPoint',
    'simulate_crashing',
    # Budget summary and price tracking
    'BudgetSummary',
    'PriceDeviation',
    'summarize_budget',
    'detect_price_deviations',
    'StandardComparison',
    'MaterialComparison',
    'analyze_standard',
    'compare_to_standard',
    # Material stock
    'MaterialStockStatus',
    'material_stock_status',
    'stock_status_frame',
]
