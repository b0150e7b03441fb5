"""
Catalog Entities - Priced resources shared across tasks.

Implements:
- Materials with handling waste
- Labor categories with social charges and insurance burden
- Crews composed of labor categories with partial participation
- Tools priced per hour of use
"""
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class Material:
    """
    Purchasable material.

    Attributes:
        id: Unique identifier
        name: Material name
        unit: Unit of measure (e.g. 'kg', 'm3', 'bag')
        unit_cost: Cost of one unit
        category: Free-text category
        waste_percent: Extra quantity lost in handling (5 means 5%)
    """

    id: str
    name: str = ""
    unit: str = ""
    unit_cost: float = 0.0
    category: str = ""
    waste_percent: float = 0.0

    @property
    def waste_factor(self) -> float:
        return 1 + (self.waste_percent or 0.0) / 100

    @classmethod
    def from_dict(cls, data: dict) -> 'Material':
        return cls(
            id=str(data['id']),
            name=data.get('name', ''),
            unit=data.get('unit', ''),
            unit_cost=float(data.get('unit_cost', 0) or 0),
            category=data.get('category', '') or '',
            waste_percent=float(data.get('waste_percent', 0) or 0),
        )


@dataclass(frozen=True)
class LaborCategory:
    """
    Labor role with its hourly rate and payroll burden.

    Attributes:
        id: Unique identifier
        role: Role name (e.g. 'Skilled mason')
        basic_hourly_rate: Take-home hourly rate
        social_charges_percent: Social charges, unemployment fund, etc.
        insurance_percent: Insurance and other burden
    """

    id: str
    role: str = ""
    basic_hourly_rate: float = 0.0
    social_charges_percent: float = 0.0
    insurance_percent: float = 0.0

    @property
    def loaded_hourly_cost(self) -> float:
        """Fully-loaded hourly cost: basic rate plus charges and insurance."""
        burden = (self.social_charges_percent or 0.0) + (self.insurance_percent or 0.0)
        return (self.basic_hourly_rate or 0.0) * (1 + burden / 100)

    @classmethod
    def from_dict(cls, data: dict) -> 'LaborCategory':
        return cls(
            id=str(data['id']),
            role=data.get('role', ''),
            basic_hourly_rate=float(data.get('basic_hourly_rate', 0) or 0),
            social_charges_percent=float(data.get('social_charges_percent', 0) or 0),
            insurance_percent=float(data.get('insurance_percent', 0) or 0),
        )


@dataclass(frozen=True)
class CrewMember:
    """One line of a crew composition."""

    labor_category_id: str
    headcount: float = 1
    participation_percent: float = 100.0  # 50 when a helper is shared

    @property
    def participation(self) -> float:
        return (self.participation_percent if self.participation_percent is not None else 100.0) / 100

    @classmethod
    def from_dict(cls, data: dict) -> 'CrewMember':
        participation = data.get('participation_percent')
        return cls(
            labor_category_id=str(data['labor_category_id']),
            headcount=float(data.get('headcount', 1) or 0),
            participation_percent=100.0 if participation is None else float(participation),
        )


@dataclass(frozen=True)
class Crew:
    """
    Reference work crew (e.g. 'Concrete crew 1+3').

    Attributes:
        id: Unique identifier
        name: Crew name
        composition: Ordered crew members
    """

    id: str
    name: str = ""
    composition: Tuple[CrewMember, ...] = field(default_factory=tuple)

    def hourly_cost(self, labor_categories_by_id: Dict[str, LaborCategory]) -> float:
        """
        Fully-loaded hourly cost of the whole crew.

        Members whose labor category is missing from the catalog
        contribute nothing.
        """
        total = 0.0
        for member in self.composition:
            category = labor_categories_by_id.get(member.labor_category_id)
            if category is None:
                continue
            total += category.loaded_hourly_cost * member.headcount * member.participation
        return total

    @property
    def headcount(self) -> float:
        """Effective number of people, weighted by participation."""
        return sum(m.headcount * m.participation for m in self.composition)

    @classmethod
    def from_dict(cls, data: dict) -> 'Crew':
        return cls(
            id=str(data['id']),
            name=data.get('name', ''),
            composition=tuple(CrewMember.from_dict(m) for m in data.get('composition', []) or []),
        )


@dataclass(frozen=True)
class Tool:
    """Equipment priced per hour of use."""

    id: str
    name: str = ""
    cost_per_hour: float = 0.0
    category: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'Tool':
        return cls(
            id=str(data['id']),
            name=data.get('name', ''),
            cost_per_hour=float(data.get('cost_per_hour', 0) or 0),
            category=data.get('category'),
        )
