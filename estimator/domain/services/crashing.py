"""
Time-Cost Trade-off (Crashing) Simulator.

Explores duration/cost combinations for one budget item by adding crews
and overtime. For every grid point:

    effective_yield = daily_yield * total_crews
                      * (1 + overtime/100 * output_factor)
                      * (1 - overtime / fatigue_divisor)
    duration        = ceil(quantity / effective_yield)
    cost            = material
                      + labor * (1 + overtime/100 * premium_factor)
                              * (1 + extra_crews * supervision_overhead)
                      + tool daily rate * duration * crew ratio
                      + fixed

Tool cost is never below the baseline tool cost, so an accelerated
scenario is never cheaper than the normal one. The simulator is read-only
with respect to the budget item.
"""
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import logging

from estimator.config import EstimatorConfig, get_config
from estimator.domain.entities import BudgetItem, Task
from .catalog_index import CatalogIndexes
from .unit_price import UnitPriceAnalysis, analyze_unit_price

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CrashingParameters:
    """Heuristic constants of the crashing model."""
    max_extra_crews: int = 3
    overtime_levels: Tuple[int, ...] = (0, 50, 100)
    overtime_output_factor: float = 0.8
    fatigue_divisor: float = 500.0
    overtime_premium_factor: float = 1.5
    supervision_overhead_per_crew: float = 0.05

    @classmethod
    def from_config(cls, config: Optional[EstimatorConfig] = None) -> 'CrashingParameters':
        section = (config or get_config()).crashing
        defaults = cls()
        return cls(
            max_extra_crews=int(section.get('max_extra_crews', defaults.max_extra_crews)),
            overtime_levels=tuple(int(o) for o in section.get('overtime_levels', defaults.overtime_levels)),
            overtime_output_factor=float(section.get('overtime_output_factor', defaults.overtime_output_factor)),
            fatigue_divisor=float(section.get('fatigue_divisor', defaults.fatigue_divisor)),
            overtime_premium_factor=float(section.get('overtime_premium_factor', defaults.overtime_premium_factor)),
            supervision_overhead_per_crew=float(
                section.get('supervision_overhead_per_crew', defaults.supervision_overhead_per_crew)
            ),
        )

    def output_multiplier(self, overtime_percent: float) -> float:
        """Output gain from overtime net of fatigue."""
        gain = 1 + overtime_percent / 100 * self.overtime_output_factor
        fatigue = 1 - overtime_percent / self.fatigue_divisor
        return gain * fatigue

    def labor_multiplier(self, overtime_percent: float, extra_crews: int) -> float:
        premium = 1 + overtime_percent / 100 * self.overtime_premium_factor
        supervision = 1 + extra_crews * self.supervision_overhead_per_crew
        return premium * supervision


@dataclass(frozen=True)
class CrashScenario:
    added_crews: int = 0
    overtime_percent: int = 0

    def normalized(self, parameters: CrashingParameters) -> 'CrashScenario':
        """Clamp crews to the grid and snap overtime to the nearest level."""
        crews = min(parameters.max_extra_crews, max(0, int(self.added_crews or 0)))
        levels = parameters.overtime_levels or (0,)
        overtime = min(levels, key=lambda level: (abs(level - (self.overtime_percent or 0)), level))
        return CrashScenario(added_crews=crews, overtime_percent=overtime)

    @property
    def accelerates(self) -> bool:
        return self.added_crews > 0 or self.overtime_percent > 0


@dataclass(frozen=True)
class FrontierPoint:
    extra_crews: int
    total_crews: int
    overtime_percent: int
    duration: int
    cost: float
    efficient: bool = False  # no other point is both faster-or-equal and cheaper


@dataclass(frozen=True)
class CrashingResult:
    item_id: str
    task_id: str
    computable: bool
    normal_duration: int = 0
    normal_cost: float = 0.0
    sim_duration: int = 0
    sim_cost: float = 0.0
    days_saved: int = 0
    cost_increase: float = 0.0
    cost_slope: float = 0.0
    scenario: CrashScenario = field(default_factory=CrashScenario)
    frontier_points: Tuple[FrontierPoint, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            'item_id': self.item_id,
            'task_id': self.task_id,
            'computable': self.computable,
            'normal_duration': self.normal_duration,
            'normal_cost': self.normal_cost,
            'sim_duration': self.sim_duration,
            'sim_cost': self.sim_cost,
            'days_saved': self.days_saved,
            'cost_increase': self.cost_increase,
            'cost_slope': self.cost_slope,
            'scenario': {
                'added_crews': self.scenario.added_crews,
                'overtime_percent': self.scenario.overtime_percent,
            },
            'frontier_points': [p.__dict__ for p in self.frontier_points],
        }


def _mark_efficient(points: List[FrontierPoint]) -> List[FrontierPoint]:
    marked = []
    for p in points:
        dominated = any(
            (o.duration <= p.duration and o.cost < p.cost)
            or (o.duration < p.duration and o.cost <= p.cost)
            for o in points
        )
        marked.append(FrontierPoint(**{**p.__dict__, 'efficient': not dominated}))
    return marked


def build_frontier(
    analysis: UnitPriceAnalysis,
    quantity: float,
    daily_yield: float,
    base_crews: int,
    parameters: CrashingParameters,
) -> List[FrontierPoint]:
    """
    Cost/duration of every (extra crews, overtime) combination.

    Returns:
        Points sorted by duration descending, ties by cost
    """
    material_total = analysis.material_cost * quantity
    fixed_total = analysis.fixed_cost * quantity
    baseline_tool_total = analysis.tool_cost * quantity
    tool_daily_rate = analysis.tool_cost * daily_yield * base_crews

    points = []
    for extra_crews in range(parameters.max_extra_crews + 1):
        total_crews = base_crews + extra_crews
        for overtime in parameters.overtime_levels:
            effective_yield = daily_yield * total_crews * parameters.output_multiplier(overtime)
            duration = math.ceil(quantity / effective_yield) if effective_yield > 0 else 0

            labor_total = analysis.labor_cost * quantity * parameters.labor_multiplier(overtime, extra_crews)
            tool_total = max(
                baseline_tool_total,
                tool_daily_rate * duration * total_crews / base_crews,
            )
            points.append(FrontierPoint(
                extra_crews=extra_crews,
                total_crews=total_crews,
                overtime_percent=overtime,
                duration=duration,
                cost=material_total + labor_total + tool_total + fixed_total,
            ))

    points.sort(key=lambda p: (-p.duration, p.cost))
    return _mark_efficient(points)


def simulate_crashing(
    budget_item: BudgetItem,
    task: Task,
    indexes: CatalogIndexes,
    scenario: Optional[CrashScenario] = None,
    parameters: Optional[CrashingParameters] = None,
    workday_hours: Optional[float] = None,
) -> CrashingResult:
    """
    Simulate compressing one budget item.

    Args:
        budget_item: Item to crash (never modified)
        task: Task referenced by the item
        indexes: Catalog indexes for the unit price analysis
        scenario: Selected crews/overtime; normalized onto the grid
        parameters: Heuristic constants (defaults from config)
        workday_hours: Hours per day for crew-based labor

    Returns:
        CrashingResult; `computable` is False when the task has no yield
    """
    parameters = parameters or CrashingParameters.from_config()
    scenario = (scenario or CrashScenario()).normalized(parameters)

    if not task.has_yield:
        logger.debug(f"Crashing not computable for item {budget_item.id}: task {task.id} has no daily yield")
        return CrashingResult(
            item_id=budget_item.id,
            task_id=task.id,
            computable=False,
            scenario=scenario,
        )

    quantity = budget_item.effective_quantity
    base_crews = budget_item.crew_count
    analysis = analyze_unit_price(task, indexes, workday_hours)

    normal_duration = math.ceil(quantity / (task.daily_yield * base_crews))
    # Component-wise sum keeps the baseline comparable with grid costs
    normal_cost = (
        analysis.material_cost * quantity
        + analysis.labor_cost * quantity
        + analysis.tool_cost * quantity
        + analysis.fixed_cost * quantity
    )

    frontier = build_frontier(analysis, quantity, task.daily_yield, base_crews, parameters)
    lookup: Dict[Tuple[int, int], FrontierPoint] = {
        (p.extra_crews, p.overtime_percent): p for p in frontier
    }
    selected = lookup[(scenario.added_crews, scenario.overtime_percent)]

    days_saved = normal_duration - selected.duration
    cost_increase = selected.cost - normal_cost
    cost_slope = cost_increase / days_saved if days_saved > 0 else 0.0

    return CrashingResult(
        item_id=budget_item.id,
        task_id=task.id,
        computable=True,
        normal_duration=normal_duration,
        normal_cost=normal_cost,
        sim_duration=selected.duration,
        sim_cost=selected.cost,
        days_saved=days_saved,
        cost_increase=cost_increase,
        cost_slope=cost_slope,
        scenario=scenario,
        frontier_points=tuple(frontier),
    )
