"""
Project Entities - Budget, receipts and price snapshots.

Implements:
- Budget items referencing catalog tasks, with planning overrides
- Input normalization (quantity >= 0, progress in [0, 100])
- Material receipts used as the actual-cost ledger for materials
- Baseline price snapshots for deviation tracking
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Tuple

from .catalog import Material


def parse_date(value) -> Optional[date]:
    """Accept date, datetime or ISO string (YYYY-MM-DD); None stays None."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass(frozen=True)
class PricingConfig:
    """Indirect cost structure applied over direct cost to reach sale price."""

    general_expenses_percent: float = 15.0
    financial_expenses_percent: float = 3.0
    profit_percent: float = 10.0
    tax_percent: float = 21.0

    @classmethod
    def from_dict(cls, data: dict) -> 'PricingConfig':
        return cls(
            general_expenses_percent=float(data.get('general_expenses_percent', 0) or 0),
            financial_expenses_percent=float(data.get('financial_expenses_percent', 0) or 0),
            profit_percent=float(data.get('profit_percent', 0) or 0),
            tax_percent=float(data.get('tax_percent', 0) or 0),
        )


@dataclass(frozen=True)
class BudgetItem:
    """
    Quantity of a task attached to a project budget.

    Attributes:
        id: Unique identifier
        task_id: Referenced catalog task
        quantity: Units of task output
        manual_duration: Duration in days forced by the user
        start_date: Planned start (defaults to project start)
        progress: Physical progress percentage (0-100)
        crews_assigned: Parallel crews working the item
        efficiency_factor: Pace rating (1.0 normal, 1.2 fast, 0.8 slow)
        allowance_percent: Fatigue/contingency allowances, lengthens duration
        snapshot_id: Baseline snapshot the item was priced against
    """

    id: str
    task_id: Optional[str]
    quantity: float = 0.0
    manual_duration: Optional[int] = None
    start_date: Optional[date] = None
    progress: float = 0.0
    crews_assigned: Optional[int] = None
    efficiency_factor: float = 1.0
    allowance_percent: float = 0.0
    snapshot_id: Optional[str] = None

    @property
    def effective_quantity(self) -> float:
        """Quantity clamped to be non-negative."""
        return max(0.0, float(self.quantity or 0.0))

    @property
    def effective_progress(self) -> float:
        """Progress clamped to [0, 100]."""
        return min(100.0, max(0.0, float(self.progress or 0.0)))

    @property
    def progress_ratio(self) -> float:
        return self.effective_progress / 100

    @property
    def crew_count(self) -> int:
        """Assigned crews, at least one."""
        return max(1, int(self.crews_assigned or 1))

    @classmethod
    def from_dict(cls, data: dict) -> 'BudgetItem':
        manual = data.get('manual_duration')
        crews = data.get('crews_assigned')
        task_id = data.get('task_id')
        return cls(
            id=str(data['id']),
            task_id=str(task_id) if task_id is not None else None,
            quantity=float(data.get('quantity', 0) or 0),
            manual_duration=int(manual) if manual is not None else None,
            start_date=parse_date(data.get('start_date')),
            progress=float(data.get('progress', 0) or 0),
            crews_assigned=int(crews) if crews is not None else None,
            efficiency_factor=float(data.get('efficiency_factor', 1.0) or 1.0),
            allowance_percent=float(data.get('allowance_percent', 0) or 0),
            snapshot_id=data.get('snapshot_id'),
        )


@dataclass(frozen=True)
class Project:
    """
    Construction project budget.

    Attributes:
        id: Unique identifier
        name: Project name
        start_date: Project start, default start of every item
        items: Budget line items
        end_date: Planned finish or deadline
        workday_hours: Hours per working day (None uses config)
        working_days: Working weekdays, 0 = Monday
        holidays: Non-working dates
        pricing: Indirect cost structure (None uses config)
        currency: Display currency code
    """

    id: str
    name: str = ""
    start_date: date = field(default_factory=date.today)
    items: Tuple[BudgetItem, ...] = field(default_factory=tuple)
    end_date: Optional[date] = None
    workday_hours: Optional[float] = None
    working_days: Optional[Tuple[int, ...]] = None
    holidays: Tuple[date, ...] = field(default_factory=tuple)
    pricing: Optional[PricingConfig] = None
    currency: str = ""

    def find_item(self, item_id: str) -> Optional[BudgetItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    @classmethod
    def from_dict(cls, data: dict) -> 'Project':
        pricing = data.get('pricing')
        working_days = data.get('working_days')
        hours = data.get('workday_hours')
        start_date = parse_date(data.get('start_date'))
        if start_date is None:
            raise ValueError(f"project '{data.get('id')}' has no start_date")
        return cls(
            id=str(data['id']),
            name=data.get('name', ''),
            start_date=start_date,
            items=tuple(BudgetItem.from_dict(i) for i in data.get('items', []) or []),
            end_date=parse_date(data.get('end_date')),
            workday_hours=float(hours) if hours is not None else None,
            working_days=tuple(int(d) for d in working_days) if working_days is not None else None,
            holidays=tuple(parse_date(h) for h in data.get('holidays', []) or []),
            pricing=PricingConfig.from_dict(pricing) if pricing else None,
            currency=data.get('currency', '') or '',
        )


# =============================================================================
# Actuals and baselines
# =============================================================================

@dataclass(frozen=True)
class ReceiptLine:
    material_id: str
    quantity_received: float
    quantity_declared: Optional[float] = None  # as stated on the delivery note


@dataclass(frozen=True)
class MaterialReceipt:
    """Material delivery recorded on site."""

    id: str
    date: date
    lines: Tuple[ReceiptLine, ...] = field(default_factory=tuple)
    delivery_note: str = ""
    provider: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> 'MaterialReceipt':
        lines = []
        for line in data.get('lines', []) or []:
            declared = line.get('quantity_declared')
            lines.append(ReceiptLine(
                material_id=str(line['material_id']),
                quantity_received=float(line.get('quantity_received', 0) or 0),
                quantity_declared=float(declared) if declared is not None else None,
            ))
        received_on = parse_date(data['date'])
        if received_on is None:
            raise ValueError(f"receipt '{data.get('id')}' has no date")
        return cls(
            id=str(data['id']),
            date=received_on,
            lines=tuple(lines),
            delivery_note=str(data.get('delivery_note', '') or ''),
            provider=data.get('provider', '') or '',
        )


@dataclass(frozen=True)
class Snapshot:
    """Frozen copy of the budget and material prices at a point in time."""

    id: str
    date: date
    name: str = ""
    total_cost: float = 0.0
    items: Tuple[BudgetItem, ...] = field(default_factory=tuple)
    materials: Tuple[Material, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict) -> 'Snapshot':
        taken_on = parse_date(data['date'])
        if taken_on is None:
            raise ValueError(f"snapshot '{data.get('id')}' has no date")
        return cls(
            id=str(data['id']),
            date=taken_on,
            name=data.get('name', ''),
            total_cost=float(data.get('total_cost', 0) or 0),
            items=tuple(BudgetItem.from_dict(i) for i in data.get('items', []) or []),
            materials=tuple(Material.from_dict(m) for m in data.get('materials', []) or []),
        )
