"""
Budget Summary - direct cost totals and sale price build-up.

Sale price structure:
    direct cost
    + general expenses         (direct * gg%)
    = subtotal
    + financial expenses       (subtotal * fin%)
    + profit                   (subtotal * profit%)
    = price before tax
    + tax                      (price before tax * tax%)
    = sale price

Also detects material price increases against a baseline snapshot.
"""
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional
import logging

from estimator.config import get_config
from estimator.domain.entities import Material, PricingConfig, Project, Snapshot, Task
from estimator.schedule import calculate_duration
from .catalog_index import CatalogIndexes
from .unit_price import price_budget_items

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudgetSummary:
    material_cost: float
    labor_cost: float
    tool_cost: float
    fixed_cost: float
    direct_cost: float
    general_expenses: float
    financial_expenses: float
    profit: float
    tax: float
    sale_price: float
    k_factor: float
    total_duration_days: int
    item_count: int

    def to_dict(self) -> dict:
        return dict(self.__dict__)


def default_pricing() -> PricingConfig:
    return PricingConfig.from_dict(get_config().pricing)


def summarize_budget(
    project: Project,
    tasks_by_id: Mapping[str, Task],
    indexes: CatalogIndexes,
    pricing: Optional[PricingConfig] = None,
) -> BudgetSummary:
    """
    Totals per cost component and the resulting sale price.

    Pricing falls back to the project's pricing, then to configuration.
    `total_duration_days` adds item durations back to back (an upper bound
    with no overlap); items without a computable duration count as zero.
    """
    pricing = pricing or project.pricing or default_pricing()
    priced = price_budget_items(project, tasks_by_id, indexes)

    material = sum(p.analysis.material_cost * p.quantity for p in priced)
    labor = sum(p.analysis.labor_cost * p.quantity for p in priced)
    tool = sum(p.analysis.tool_cost * p.quantity for p in priced)
    fixed = sum(p.analysis.fixed_cost * p.quantity for p in priced)
    direct = material + labor + tool + fixed

    general = direct * pricing.general_expenses_percent / 100
    subtotal = direct + general
    financial = subtotal * pricing.financial_expenses_percent / 100
    profit = subtotal * pricing.profit_percent / 100
    before_tax = subtotal + financial + profit
    tax = before_tax * pricing.tax_percent / 100
    sale_price = before_tax + tax

    total_days = 0
    for p in priced:
        if p.item.manual_duration is not None:
            total_days += max(0, p.item.manual_duration)
        else:
            total_days += calculate_duration(
                p.quantity, p.task.daily_yield, p.item.crew_count,
                p.item.efficiency_factor, p.item.allowance_percent,
            ) or 0

    return BudgetSummary(
        material_cost=material,
        labor_cost=labor,
        tool_cost=tool,
        fixed_cost=fixed,
        direct_cost=direct,
        general_expenses=general,
        financial_expenses=financial,
        profit=profit,
        tax=tax,
        sale_price=sale_price,
        k_factor=sale_price / direct if direct > 0 else 1.0,
        total_duration_days=total_days,
        item_count=len(priced),
    )


# =========================================================================
# Price deviations
# =========================================================================

@dataclass(frozen=True)
class PriceDeviation:
    material_id: str
    name: str
    base_price: float
    current_price: float
    percent: float


def detect_price_deviations(
    current_materials: Iterable[Material],
    snapshot: Optional[Snapshot],
    threshold_percent: Optional[float] = None,
) -> List[PriceDeviation]:
    """
    Materials whose price rose more than `threshold_percent` since the snapshot.

    Materials absent from the snapshot, or with a zero base price, are
    not reported. Sorted by increase percentage, largest first.
    """
    if snapshot is None or not snapshot.materials:
        return []
    threshold = threshold_percent if threshold_percent is not None else get_config().price_deviation_threshold

    base_by_id = {m.id: m for m in snapshot.materials}
    deviations = []
    for material in current_materials:
        base = base_by_id.get(material.id)
        if base is None or base.unit_cost <= 0:
            continue
        percent = (material.unit_cost - base.unit_cost) * 100 / base.unit_cost
        if percent > threshold:
            deviations.append(PriceDeviation(
                material_id=material.id,
                name=material.name,
                base_price=base.unit_cost,
                current_price=material.unit_cost,
                percent=percent,
            ))

    deviations.sort(key=lambda d: d.percent, reverse=True)
    if deviations:
        logger.info(f"{len(deviations)} materials above {threshold}% increase since snapshot {snapshot.id}")
    return deviations
