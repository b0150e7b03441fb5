"""
Project Roll-Up / Earned Value Engine.

Implements earned value management over a project budget:
- Budget at Completion (BAC)
- Planned Value (PV) to date, linear within each item's planned window
- Earned Value (EV) from physical progress
- Actual Cost (AC): material receipts plus labor/tool inferred from progress
- CV, SV, CPI, SPI, EAC, ETC, VAC with guarded divisions
- Weekly S-curve series for visualization

The S-curve apportions the EV/AC totals by elapsed-week ratio instead of
replaying per-period ledgers (none exist in a budget snapshot). The planned
line follows a smoothed progress curve scaled by BAC.
"""
import math
from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple
import logging

import pandas as pd

from estimator.config import EstimatorConfig, get_config
from estimator.domain.entities import Material, MaterialReceipt, Project, Task
from estimator.schedule import (
    DEFAULT_WORKING_DAYS,
    CostCurve,
    ItemSchedule,
    cumulative_progress,
    schedule_item,
)
from .catalog_index import CatalogIndexes
from .unit_price import PricedItem, UnitPriceAnalysis, price_budget_items

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemValuation:
    """Earned value figures of one budget item."""
    item_id: str
    task_id: str
    analysis: UnitPriceAnalysis
    quantity: float
    progress: float
    budget: float
    planned_value: float
    earned_value: float
    labor_tool_actual: float
    schedule: ItemSchedule

    @property
    def schedule_computable(self) -> bool:
        return self.schedule.computable


@dataclass(frozen=True)
class SCurvePoint:
    """Cumulative values at the start of one S-curve bucket."""
    week: int
    label: str
    date: date
    planned_value: float
    earned_value: Optional[float]  # None for future buckets
    actual_cost: Optional[float]


@dataclass(frozen=True)
class EarnedValueResult:
    """Project-level earned value metrics."""
    bac: float
    pv: float
    ev: float
    ac: float
    cv: float
    sv: float
    cpi: float
    spi: float
    eac: float
    etc: float
    vac: float
    material_actual: float = 0.0
    labor_tool_actual: float = 0.0
    as_of: Optional[date] = None
    s_curve: Tuple[SCurvePoint, ...] = field(default_factory=tuple)
    items: Tuple[ItemValuation, ...] = field(default_factory=tuple)
    uncomputable_item_ids: Tuple[str, ...] = field(default_factory=tuple)

    def metrics(self) -> dict:
        return {
            'BAC': self.bac, 'PV': self.pv, 'EV': self.ev, 'AC': self.ac,
            'CV': self.cv, 'SV': self.sv, 'CPI': self.cpi, 'SPI': self.spi,
            'EAC': self.eac, 'ETC': self.etc, 'VAC': self.vac,
        }

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            **self.metrics(),
            'as_of': self.as_of.isoformat() if self.as_of else None,
            'material_actual': self.material_actual,
            'labor_tool_actual': self.labor_tool_actual,
            'uncomputable_item_ids': list(self.uncomputable_item_ids),
            's_curve': [
                {**asdict(point), 'date': point.date.isoformat()}
                for point in self.s_curve
            ],
        }

    def s_curve_frame(self) -> pd.DataFrame:
        """S-curve series as a DataFrame indexed by week."""
        columns = ['week', 'label', 'date', 'planned_value', 'earned_value', 'actual_cost']
        frame = pd.DataFrame([asdict(point) for point in self.s_curve], columns=columns)
        frame['date'] = pd.to_datetime(frame['date'])
        return frame.set_index('week')


# =========================================================================
# Building blocks
# =========================================================================

def planned_value_to_date(budget: float, schedule: ItemSchedule, as_of: date) -> float:
    """
    Planned value of one item at `as_of`.

    Full budget once the window has ended (immediately at start for
    zero-duration items), linear inside the window, zero before it.
    """
    if as_of >= schedule.end:
        return budget
    if as_of > schedule.start:
        elapsed = (as_of - schedule.start).days
        return budget * min(1.0, max(0.0, elapsed / schedule.span_days))
    return 0.0


def material_actual_cost(
    receipts: Iterable[MaterialReceipt],
    materials_by_id: Mapping[str, Material],
    as_of: date,
) -> float:
    """Value of materials received on or before `as_of`, at catalog price."""
    total = 0.0
    for receipt in receipts or ():
        if receipt.date > as_of:
            continue
        for line in receipt.lines:
            material = materials_by_id.get(line.material_id)
            if material is None:
                continue
            total += (material.unit_cost or 0.0) * max(0.0, line.quantity_received)
    return total


def performance_indices(bac: float, pv: float, ev: float, ac: float) -> dict:
    """
    Derived EVM indices with guarded divisions.

    CPI and SPI default to 1 when AC or PV is zero.
    """
    cpi = ev / ac if ac > 0 else 1.0
    spi = ev / pv if pv > 0 else 1.0
    eac = bac / cpi if cpi > 0 else bac
    return {
        'cv': ev - ac,
        'sv': ev - pv,
        'cpi': cpi,
        'spi': spi,
        'eac': eac,
        'etc': eac - ac,
        'vac': bac - eac,
    }


def value_item(
    priced: PricedItem,
    project: Project,
    as_of: date,
    calendar_mode: str,
    default_working_days: Sequence[int] = DEFAULT_WORKING_DAYS,
) -> ItemValuation:
    schedule = schedule_item(priced.item, priced.task, project, calendar_mode, default_working_days)
    budget = priced.total_cost
    progress_ratio = priced.item.progress_ratio
    return ItemValuation(
        item_id=priced.item.id,
        task_id=priced.task.id,
        analysis=priced.analysis,
        quantity=priced.quantity,
        progress=priced.item.effective_progress,
        budget=budget,
        planned_value=planned_value_to_date(budget, schedule, as_of),
        earned_value=budget * progress_ratio,
        labor_tool_actual=priced.analysis.labor_and_tool_cost * priced.quantity * progress_ratio,
        schedule=schedule,
    )


def build_s_curve(
    project_start: date,
    valuations: Iterable[ItemValuation],
    bac: float,
    ev: float,
    ac: float,
    as_of: date,
    bucket_days: int = 7,
    tail_buckets: int = 2,
    default_horizon_days: int = 30,
    curve: CostCurve = CostCurve.SMOOTH,
) -> List[SCurvePoint]:
    """
    Bucketed cumulative PV / EV / AC series.

    PV(w) = BAC * curve(min(1, w * bucket_days / horizon)); BAC after the horizon.
    EV(w), AC(w) = total * min(1, w / max(1, buckets_elapsed)) for buckets
    not in the future, None otherwise.
    """
    horizon_days = max(
        ((v.schedule.end - project_start).days for v in valuations),
        default=0,
    )
    if horizon_days <= 0:
        horizon_days = default_horizon_days

    horizon_buckets = math.ceil(horizon_days / bucket_days)
    buckets_elapsed = math.ceil((as_of - project_start).days / bucket_days)

    points = []
    for w in range(horizon_buckets + tail_buckets + 1):
        bucket_date = project_start + timedelta(days=w * bucket_days)

        if w <= horizon_buckets:
            planned = bac * cumulative_progress(curve, min(1.0, w * bucket_days / horizon_days))
        else:
            planned = bac

        if bucket_date > as_of:
            earned = actual = None
        else:
            factor = min(1.0, w / max(1, buckets_elapsed))
            earned = ev * factor
            actual = ac * factor

        points.append(SCurvePoint(
            week=w,
            label=f"Week {w}",
            date=bucket_date,
            planned_value=planned,
            earned_value=earned,
            actual_cost=actual,
        ))
    return points


# =========================================================================
# Roll-up
# =========================================================================

def roll_up_project(
    project: Project,
    tasks_by_id: Mapping[str, Task],
    indexes: CatalogIndexes,
    receipts: Iterable[MaterialReceipt] = (),
    as_of: Optional[date] = None,
    config: Optional[EstimatorConfig] = None,
    curve: CostCurve = CostCurve.SMOOTH,
) -> EarnedValueResult:
    """
    Compute project earned value metrics and the S-curve series.

    Args:
        project: Project with its budget items
        tasks_by_id: Task catalog
        indexes: Catalog indexes
        receipts: Material receipts (actual material cost ledger)
        as_of: Status date (defaults to today)
        config: Configuration (defaults to the shared instance)
        curve: Shape of the planned S-curve

    Returns:
        EarnedValueResult
    """
    config = config or get_config()
    as_of = as_of or date.today()

    priced_items = price_budget_items(
        project, tasks_by_id, indexes,
        workday_hours=project.workday_hours or config.workday_hours,
    )
    valuations = [
        value_item(p, project, as_of, config.calendar_mode, tuple(config.working_days))
        for p in priced_items
    ]

    bac = sum(v.budget for v in valuations)
    ev = sum(v.earned_value for v in valuations)
    pv = sum(v.planned_value for v in valuations)
    material_actual = material_actual_cost(receipts, indexes.materials_by_id, as_of)
    labor_tool_actual = sum(v.labor_tool_actual for v in valuations)
    ac = material_actual + labor_tool_actual

    indices = performance_indices(bac, pv, ev, ac)

    s_curve = build_s_curve(
        project.start_date,
        valuations,
        bac, ev, ac, as_of,
        bucket_days=config.bucket_days,
        tail_buckets=config.tail_buckets,
        default_horizon_days=config.default_horizon_days,
        curve=curve,
    )

    uncomputable = tuple(v.item_id for v in valuations if not v.schedule_computable)
    if uncomputable:
        logger.debug(f"Project {project.id}: {len(uncomputable)} items without computable duration")

    return EarnedValueResult(
        bac=bac,
        pv=pv,
        ev=ev,
        ac=ac,
        material_actual=material_actual,
        labor_tool_actual=labor_tool_actual,
        as_of=as_of,
        s_curve=tuple(s_curve),
        items=tuple(valuations),
        uncomputable_item_ids=uncomputable,
        **indices,
    )
