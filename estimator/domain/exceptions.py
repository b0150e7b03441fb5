"""
Domain Exceptions for the Estimator engine.

The analysis services never raise for incomplete catalog data; missing
references and degenerate ratios degrade to defined numeric fallbacks.
These exceptions are raised at the edges only:
- Snapshot loading (unreadable or malformed input files)
- Lookups requested explicitly by a caller (CLI, integrations)
"""


class DomainError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


# =============================================================================
# Snapshot Exceptions
# =============================================================================

class SnapshotLoadError(DomainError):
    """Raised when a catalog/project snapshot file cannot be loaded."""

    def __init__(self, path: str, reason: str):
        message = f"Could not load snapshot '{path}': {reason}"
        super().__init__(message, code="SNAPSHOT_LOAD_FAILED")
        self.path = path
        self.reason = reason


# =============================================================================
# Lookup Exceptions
# =============================================================================

class TaskNotFoundError(DomainError):
    """Raised when a task cannot be found in the catalog."""

    def __init__(self, task_id: str):
        message = f"Task with id '{task_id}' not found"
        super().__init__(message, code="TASK_NOT_FOUND")
        self.task_id = task_id


class BudgetItemNotFoundError(DomainError):
    """Raised when a budget item cannot be found in the project."""

    def __init__(self, item_id: str, project_id: str = ""):
        message = f"Budget item '{item_id}' not found"
        if project_id:
            message += f" in project '{project_id}'"
        super().__init__(message, code="BUDGET_ITEM_NOT_FOUND")
        self.item_id = item_id
        self.project_id = project_id
