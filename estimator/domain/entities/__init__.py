"""
Domain Entities - Immutable catalog, task and project snapshots.
"""

from .catalog import Material, LaborCategory, CrewMember, Crew, Tool
from .task import (
    Task, StandardYields, StandardMaterialYield, StandardLaborYield, StandardToolYield,
    MaterialYield, ToolYield, CrewYield,
)
from .project import (
    BudgetItem, Project, PricingConfig, MaterialReceipt, ReceiptLine, Snapshot,
    parse_date,
)

__all__ = [
    'Material', 'LaborCategory', 'CrewMember', 'Crew', 'Tool',
    'Task', 'StandardYields', 'StandardMaterialYield', 'StandardLaborYield', 'StandardToolYield',
    'MaterialYield', 'ToolYield', 'CrewYield',
    'BudgetItem', 'Project', 'PricingConfig', 'MaterialReceipt', 'ReceiptLine', 'Snapshot',
    'parse_date',
]
