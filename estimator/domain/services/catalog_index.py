"""
Catalog Index Builder - O(1) lookup structures over flat catalog lists.

Indexes are derived data: rebuild them whenever any source list changes.
Nothing downstream re-scans the raw lists.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Tuple, TypeVar

from estimator.domain.entities import (
    Material, Tool, LaborCategory, Crew,
    MaterialYield, ToolYield, CrewYield,
)

T = TypeVar('T')


@dataclass(frozen=True)
class CrewCosting:
    """
    Optional capability bundle enabling crew-based labor costing.

    When the unit price analyzer receives no bundle, labor falls back to
    the task's manually entered labor cost.
    """
    crew_yields_by_task: Mapping[str, Tuple[CrewYield, ...]]
    crews_by_id: Mapping[str, Crew]
    labor_categories_by_id: Mapping[str, LaborCategory]
    workday_hours: float = 9.0


@dataclass(frozen=True)
class CatalogIndexes:
    """
    Id-based lookups built from one snapshot of the catalog.

    Attributes:
        materials_by_id / tools_by_id / labor_categories_by_id / crews_by_id:
            id -> entity
        material_yields_by_task / tool_yields_by_task / crew_yields_by_task:
            task id -> consumption records, in source order
    """
    materials_by_id: Dict[str, Material] = field(default_factory=dict)
    tools_by_id: Dict[str, Tool] = field(default_factory=dict)
    labor_categories_by_id: Dict[str, LaborCategory] = field(default_factory=dict)
    crews_by_id: Dict[str, Crew] = field(default_factory=dict)
    material_yields_by_task: Dict[str, Tuple[MaterialYield, ...]] = field(default_factory=dict)
    tool_yields_by_task: Dict[str, Tuple[ToolYield, ...]] = field(default_factory=dict)
    crew_yields_by_task: Dict[str, Tuple[CrewYield, ...]] = field(default_factory=dict)

    def material_yields_for(self, task_id: str) -> Tuple[MaterialYield, ...]:
        return self.material_yields_by_task.get(task_id, ())

    def tool_yields_for(self, task_id: str) -> Tuple[ToolYield, ...]:
        return self.tool_yields_by_task.get(task_id, ())

    def crew_yields_for(self, task_id: str) -> Tuple[CrewYield, ...]:
        return self.crew_yields_by_task.get(task_id, ())

    def crew_costing(self, workday_hours: float = 9.0) -> Optional[CrewCosting]:
        """Crew capability bundle, or None when the catalog holds no crews."""
        if not self.crews_by_id:
            return None
        return CrewCosting(
            crew_yields_by_task=self.crew_yields_by_task,
            crews_by_id=self.crews_by_id,
            labor_categories_by_id=self.labor_categories_by_id,
            workday_hours=workday_hours,
        )


def index_by_id(entities: Optional[Iterable[T]]) -> Dict[str, T]:
    """Map id -> entity. Later duplicates replace earlier ones."""
    return {entity.id: entity for entity in entities or ()}


def group_by_task(records: Optional[Iterable[T]]) -> Dict[str, Tuple[T, ...]]:
    """Map task id -> records for that task, preserving source order."""
    grouped = defaultdict(list)
    for record in records or ():
        grouped[record.task_id].append(record)
    return {task_id: tuple(items) for task_id, items in grouped.items()}


def build_indexes(
    materials: Optional[Iterable[Material]] = None,
    tools: Optional[Iterable[Tool]] = None,
    labor_categories: Optional[Iterable[LaborCategory]] = None,
    crews: Optional[Iterable[Crew]] = None,
    material_yields: Optional[Iterable[MaterialYield]] = None,
    tool_yields: Optional[Iterable[ToolYield]] = None,
    crew_yields: Optional[Iterable[CrewYield]] = None,
) -> CatalogIndexes:
    """
    Build all catalog indexes in one linear pass per list.

    Pure and idempotent: the same lists always produce equal indexes, and
    ids absent from the lists never appear in the result.
    """
    return CatalogIndexes(
        materials_by_id=index_by_id(materials),
        tools_by_id=index_by_id(tools),
        labor_categories_by_id=index_by_id(labor_categories),
        crews_by_id=index_by_id(crews),
        material_yields_by_task=group_by_task(material_yields),
        tool_yields_by_task=group_by_task(tool_yields),
        crew_yields_by_task=group_by_task(crew_yields),
    )
