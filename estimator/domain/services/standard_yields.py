"""
Standard yield comparison.

Prices a task's reference recipe (standard yields) and compares the
task's actual material consumption against it.
"""
from dataclasses import dataclass, field
from typing import Optional, Tuple

from estimator.config import get_config
from estimator.domain.entities import Task
from .catalog_index import CatalogIndexes
from .unit_price import UnitPriceAnalysis, analyze_unit_price, LABOR_SOURCE_CREW, LABOR_SOURCE_MANUAL

# Relative difference (percent) above which a quantity counts as modified
DIFFERENCE_TOLERANCE_PERCENT = 1.0


@dataclass(frozen=True)
class MaterialComparison:
    material_id: str
    quantity: float
    standard_quantity: Optional[float]
    diff: float
    percent: float
    is_new: bool = False

    @property
    def is_different(self) -> bool:
        return self.is_new or abs(self.percent) > DIFFERENCE_TOLERANCE_PERCENT


@dataclass(frozen=True)
class StandardComparison:
    task_id: str
    actual: UnitPriceAnalysis
    standard: Optional[UnitPriceAnalysis]
    materials: Tuple[MaterialComparison, ...] = field(default_factory=tuple)

    @property
    def unit_cost_difference(self) -> float:
        if self.standard is None:
            return 0.0
        return self.actual.total_unit_cost - self.standard.total_unit_cost


def analyze_standard(task: Task, indexes: CatalogIndexes) -> Optional[UnitPriceAnalysis]:
    """
    Unit price of the task's standard recipe.

    Labor is labor-hours per unit at each category's loaded hourly cost;
    without standard labor lines the manual labor cost is used. Returns
    None when the task has no standard yields.
    """
    standard = task.standard_yields
    if standard is None:
        return None

    material = 0.0
    for line in standard.materials:
        m = indexes.materials_by_id.get(line.material_id)
        if m is not None:
            material += m.unit_cost * line.quantity * (1 + line.waste_percent / 100)

    tool = 0.0
    for line in standard.equipment:
        t = indexes.tools_by_id.get(line.tool_id)
        if t is not None:
            tool += t.cost_per_hour * line.hours_per_unit

    if standard.labor:
        labor = 0.0
        for line in standard.labor:
            category = indexes.labor_categories_by_id.get(line.labor_category_id)
            if category is not None:
                labor += category.loaded_hourly_cost * line.hh_per_unit
        labor_source = LABOR_SOURCE_CREW
    else:
        labor = task.labor_cost
        labor_source = LABOR_SOURCE_MANUAL

    return UnitPriceAnalysis.from_components(
        task_id=task.id,
        material_cost=material,
        labor_cost=labor,
        tool_cost=tool,
        fixed_cost=task.fixed_cost,
        labor_source=labor_source,
    )


def compare_to_standard(
    task: Task,
    indexes: CatalogIndexes,
    workday_hours: Optional[float] = None,
) -> StandardComparison:
    """Compare the task's recipe and unit price with its standard yields."""
    actual = analyze_unit_price(task, indexes, workday_hours or get_config().workday_hours)
    standard = analyze_standard(task, indexes)

    comparisons = []
    if task.standard_yields is not None:
        std_by_material = {m.material_id: m for m in task.standard_yields.materials}
        for record in indexes.material_yields_for(task.id):
            std = std_by_material.get(record.material_id)
            if std is None:
                comparisons.append(MaterialComparison(
                    material_id=record.material_id,
                    quantity=record.quantity,
                    standard_quantity=None,
                    diff=record.quantity,
                    percent=0.0,
                    is_new=True,
                ))
                continue
            diff = record.quantity - std.quantity
            comparisons.append(MaterialComparison(
                material_id=record.material_id,
                quantity=record.quantity,
                standard_quantity=std.quantity,
                diff=diff,
                percent=diff * 100 / std.quantity if std.quantity > 0 else 0.0,
            ))

    return StandardComparison(
        task_id=task.id,
        actual=actual,
        standard=standard,
        materials=tuple(comparisons),
    )
