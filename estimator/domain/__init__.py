"""
Domain Layer - Core estimating entities and analysis services.

This module contains:
- entities/: Immutable catalog, task and project snapshots
- services/: Unit price analysis, earned value, Pareto, crashing
"""

from .entities import (
    Material, LaborCategory, CrewMember, Crew, Tool,
    Task, MaterialYield, ToolYield, CrewYield,
    BudgetItem, Project, MaterialReceipt, ReceiptLine, Snapshot, PricingConfig,
)

__all__ = [
    'Material', 'LaborCategory', 'CrewMember', 'Crew', 'Tool',
    'Task', 'MaterialYield', 'ToolYield', 'CrewYield',
    'BudgetItem', 'Project', 'MaterialReceipt', 'ReceiptLine', 'Snapshot', 'PricingConfig',
]
