"""
Unit Price Analyzer - cost of one unit of a task's output (APU).

    total_unit_cost = material + labor + tool + fixed

- material: sum of unit_cost * quantity * (1 + waste / 100)
- tool: sum of cost_per_hour * hours_per_unit
- labor: crew-based when crew data is supplied and the task has a crew
  assignment, otherwise the task's manual labor cost
- fixed: the task's flat per-unit cost

Dangling references (deleted materials, tools, crews, labor categories)
contribute zero. The analysis is pure and deterministic.
"""
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
import logging

from estimator.config import get_config
from estimator.domain.entities import (
    BudgetItem, Project, Task, Material, Tool, MaterialYield, ToolYield,
)
from .catalog_index import CatalogIndexes, CrewCosting

logger = logging.getLogger(__name__)

LABOR_SOURCE_CREW = "crew"
LABOR_SOURCE_MANUAL = "manual"


@dataclass(frozen=True)
class UnitPriceAnalysis:
    """Cost breakdown per unit of task output."""
    task_id: str
    material_cost: float
    labor_cost: float
    tool_cost: float
    fixed_cost: float
    total_unit_cost: float
    labor_source: str = LABOR_SOURCE_MANUAL

    @classmethod
    def from_components(
        cls,
        task_id: str,
        material_cost: float,
        labor_cost: float,
        tool_cost: float,
        fixed_cost: float,
        labor_source: str = LABOR_SOURCE_MANUAL,
    ) -> 'UnitPriceAnalysis':
        material_cost = max(0.0, material_cost)
        labor_cost = max(0.0, labor_cost)
        tool_cost = max(0.0, tool_cost)
        fixed_cost = max(0.0, fixed_cost)
        return cls(
            task_id=task_id,
            material_cost=material_cost,
            labor_cost=labor_cost,
            tool_cost=tool_cost,
            fixed_cost=fixed_cost,
            total_unit_cost=material_cost + labor_cost + tool_cost + fixed_cost,
            labor_source=labor_source,
        )

    @property
    def labor_and_tool_cost(self) -> float:
        return self.labor_cost + self.tool_cost

    def to_dict(self) -> dict:
        return {
            'task_id': self.task_id,
            'material_cost': self.material_cost,
            'labor_cost': self.labor_cost,
            'tool_cost': self.tool_cost,
            'fixed_cost': self.fixed_cost,
            'total_unit_cost': self.total_unit_cost,
            'labor_source': self.labor_source,
        }


def material_cost_per_unit(
    yields: Sequence[MaterialYield],
    materials_by_id: Mapping[str, Material],
) -> float:
    total = 0.0
    for record in yields:
        material = materials_by_id.get(record.material_id)
        if material is None:
            continue
        waste = record.waste_percent if record.waste_percent is not None else material.waste_percent
        total += (material.unit_cost or 0.0) * record.quantity * (1 + (waste or 0.0) / 100)
    return total


def tool_cost_per_unit(
    yields: Sequence[ToolYield],
    tools_by_id: Mapping[str, Tool],
) -> float:
    total = 0.0
    for record in yields:
        tool = tools_by_id.get(record.tool_id)
        if tool is None:
            continue
        total += (tool.cost_per_hour or 0.0) * record.hours_per_unit
    return total


def crew_labor_cost_per_unit(task: Task, crew_costing: CrewCosting) -> Optional[float]:
    """
    Labor cost per unit derived from the task's first resolvable crew.

    Crew-hours per unit come from the daily yield:
        workday_hours * crews_assigned / daily_yield
    or, without a daily yield, from the labor-hours standard:
        yield_hh * crews_assigned / crew_headcount

    Returns:
        Cost per unit, or None when no crew assignment can be priced
    """
    for record in crew_costing.crew_yields_by_task.get(task.id, ()):
        crew = crew_costing.crews_by_id.get(record.crew_id)
        if crew is None:
            continue

        hourly = crew.hourly_cost(crew_costing.labor_categories_by_id)
        if hourly <= 0:
            logger.debug(f"Task {task.id}: crew {crew.id} has no priced members, using manual labor")
            return None
        if task.has_yield:
            hours_per_unit = crew_costing.workday_hours * record.quantity / task.daily_yield
        elif task.yield_hh and crew.headcount > 0:
            hours_per_unit = task.yield_hh * record.quantity / crew.headcount
        else:
            logger.debug(f"Task {task.id}: crew {crew.id} assigned but no yield to derive hours from")
            return None
        return hourly * hours_per_unit
    return None


def analyze(
    task: Task,
    material_yields_by_task: Mapping[str, Tuple[MaterialYield, ...]],
    materials_by_id: Mapping[str, Material],
    tool_yields_by_task: Mapping[str, Tuple[ToolYield, ...]],
    tools_by_id: Mapping[str, Tool],
    crew_costing: Optional[CrewCosting] = None,
) -> UnitPriceAnalysis:
    """
    Compute the unit price breakdown of a task.

    Args:
        task: Task to price
        material_yields_by_task: task id -> material consumption records
        materials_by_id: material id -> Material
        tool_yields_by_task: task id -> tool consumption records
        tools_by_id: tool id -> Tool
        crew_costing: Optional crew data; when absent labor uses task.labor_cost

    Returns:
        UnitPriceAnalysis with all components per unit of output
    """
    material = material_cost_per_unit(material_yields_by_task.get(task.id, ()), materials_by_id)
    tool = tool_cost_per_unit(tool_yields_by_task.get(task.id, ()), tools_by_id)

    labor = None
    if crew_costing is not None:
        labor = crew_labor_cost_per_unit(task, crew_costing)

    if labor is None:
        labor_source = LABOR_SOURCE_MANUAL
        labor = task.labor_cost or 0.0
    else:
        labor_source = LABOR_SOURCE_CREW

    return UnitPriceAnalysis.from_components(
        task_id=task.id,
        material_cost=material,
        labor_cost=labor,
        tool_cost=tool,
        fixed_cost=task.fixed_cost or 0.0,
        labor_source=labor_source,
    )


def analyze_unit_price(
    task: Task,
    indexes: CatalogIndexes,
    workday_hours: Optional[float] = None,
) -> UnitPriceAnalysis:
    """
    Analyze a task against a full set of catalog indexes.

    Crew-based labor is used whenever the catalog contains crews.
    """
    hours = workday_hours if workday_hours is not None else get_config().workday_hours
    return analyze(
        task,
        indexes.material_yields_by_task,
        indexes.materials_by_id,
        indexes.tool_yields_by_task,
        indexes.tools_by_id,
        indexes.crew_costing(hours),
    )


@dataclass(frozen=True)
class PricedItem:
    """A budget item joined with its task and unit price analysis."""
    item: BudgetItem
    task: Task
    analysis: UnitPriceAnalysis

    @property
    def quantity(self) -> float:
        return self.item.effective_quantity

    @property
    def total_cost(self) -> float:
        return self.analysis.total_unit_cost * self.quantity


def price_budget_items(
    project: Project,
    tasks_by_id: Mapping[str, Task],
    indexes: CatalogIndexes,
    workday_hours: Optional[float] = None,
) -> List[PricedItem]:
    """
    Price every budget item of a project, in budget order.

    Items without a task, or whose task is missing from the catalog, are
    skipped. Each distinct task is analyzed once.
    """
    if workday_hours is None:
        workday_hours = project.workday_hours or get_config().workday_hours

    analyses: Dict[str, UnitPriceAnalysis] = {}
    priced = []
    for item in project.items:
        task = tasks_by_id.get(item.task_id) if item.task_id else None
        if task is None:
            logger.debug(f"Skipping budget item {item.id}: task '{item.task_id}' not in catalog")
            continue
        if task.id not in analyses:
            analyses[task.id] = analyze_unit_price(task, indexes, workday_hours)
        priced.append(PricedItem(item=item, task=task, analysis=analyses[task.id]))
    return priced
