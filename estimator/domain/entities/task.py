"""
Task Entity - Unit-rate work item and its resource recipe.

A task produces one unit of output (m2 of wall, m3 of concrete, ...).
Its recipe is stored in three consumption record types keyed by task id:
- MaterialYield: material quantity per unit of output
- ToolYield: hours of tool use per unit of output
- CrewYield: crew-units assigned to the task
"""
from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class StandardMaterialYield:
    material_id: str
    quantity: float
    waste_percent: float = 0.0


@dataclass(frozen=True)
class StandardLaborYield:
    labor_category_id: str
    hh_per_unit: float


@dataclass(frozen=True)
class StandardToolYield:
    tool_id: str
    hours_per_unit: float


@dataclass(frozen=True)
class StandardYields:
    """Reference recipe for a task, used as a comparison baseline."""

    materials: Tuple[StandardMaterialYield, ...] = field(default_factory=tuple)
    labor: Tuple[StandardLaborYield, ...] = field(default_factory=tuple)
    equipment: Tuple[StandardToolYield, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict) -> 'StandardYields':
        return cls(
            materials=tuple(
                StandardMaterialYield(
                    material_id=str(m['material_id']),
                    quantity=float(m.get('quantity', 0) or 0),
                    waste_percent=float(m.get('waste_percent', 0) or 0),
                )
                for m in data.get('materials', []) or []
            ),
            labor=tuple(
                StandardLaborYield(
                    labor_category_id=str(l['labor_category_id']),
                    hh_per_unit=float(l.get('hh_per_unit', 0) or 0),
                )
                for l in data.get('labor', []) or []
            ),
            equipment=tuple(
                StandardToolYield(
                    tool_id=str(e['tool_id']),
                    hours_per_unit=float(e.get('hours_per_unit', 0) or 0),
                )
                for e in data.get('equipment', []) or []
            ),
        )


@dataclass(frozen=True)
class Task:
    """
    Unit-rate work item.

    Attributes:
        id: Unique identifier
        name: Task name
        unit: Output unit (m2, m3, ml, ...)
        category: Rubric the task belongs to
        labor_cost: Manually entered labor cost per unit (fallback)
        daily_yield: Units one reference crew produces per day
        yield_hh: Labor-hours per unit of output
        fixed_cost: Flat per-unit cost (freight, subcontracted price)
        standard_yields: Reference recipe for comparisons
        code: External task code
    """

    id: str
    name: str = ""
    unit: str = ""
    category: str = ""
    labor_cost: float = 0.0
    daily_yield: float = 0.0
    yield_hh: Optional[float] = None
    fixed_cost: float = 0.0
    standard_yields: Optional[StandardYields] = None
    code: str = ""

    @property
    def has_yield(self) -> bool:
        return (self.daily_yield or 0) > 0

    @classmethod
    def from_dict(cls, data: dict) -> 'Task':
        standard = data.get('standard_yields')
        yield_hh = data.get('yield_hh')
        return cls(
            id=str(data['id']),
            name=data.get('name', ''),
            unit=data.get('unit', ''),
            category=data.get('category', '') or '',
            labor_cost=float(data.get('labor_cost', 0) or 0),
            daily_yield=float(data.get('daily_yield', 0) or 0),
            yield_hh=float(yield_hh) if yield_hh is not None else None,
            fixed_cost=float(data.get('fixed_cost', 0) or 0),
            standard_yields=StandardYields.from_dict(standard) if standard else None,
            code=str(data.get('code', '') or ''),
        )


# =============================================================================
# Resource consumption records
# =============================================================================

@dataclass(frozen=True)
class MaterialYield:
    """Material consumed per unit of task output."""

    task_id: str
    material_id: str
    quantity: float
    waste_percent: Optional[float] = None  # overrides Material.waste_percent

    @classmethod
    def from_dict(cls, data: dict) -> 'MaterialYield':
        waste = data.get('waste_percent')
        return cls(
            task_id=str(data['task_id']),
            material_id=str(data['material_id']),
            quantity=float(data.get('quantity', 0) or 0),
            waste_percent=float(waste) if waste is not None else None,
        )


@dataclass(frozen=True)
class ToolYield:
    """Hours of tool use per unit of task output."""

    task_id: str
    tool_id: str
    hours_per_unit: float

    @classmethod
    def from_dict(cls, data: dict) -> 'ToolYield':
        return cls(
            task_id=str(data['task_id']),
            tool_id=str(data['tool_id']),
            hours_per_unit=float(data.get('hours_per_unit', 0) or 0),
        )


@dataclass(frozen=True)
class CrewYield:
    """Crew assignment for a task (quantity is usually 1 crew)."""

    task_id: str
    crew_id: str
    quantity: float = 1.0

    @classmethod
    def from_dict(cls, data: dict) -> 'CrewYield':
        return cls(
            task_id=str(data['task_id']),
            crew_id=str(data['crew_id']),
            quantity=float(data.get('quantity', 1) or 0),
        )
