"""
Snapshot Loader for the Estimator engine.

Loads one YAML (or JSON) document holding a catalog and project snapshot:
- materials, tools, labor_categories, crews, tasks
- material_yields, tool_yields, crew_yields
- project (with its budget items), receipts, snapshots
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple
import logging

import yaml

from estimator.domain.entities import (
    Material, Tool, LaborCategory, Crew, Task,
    MaterialYield, ToolYield, CrewYield,
    Project, MaterialReceipt, Snapshot,
)
from estimator.domain.exceptions import (
    SnapshotLoadError,
    TaskNotFoundError,
    BudgetItemNotFoundError,
)
from estimator.domain.services import CatalogIndexes, build_indexes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EstimatorSnapshot:
    """Everything the analysis services need for one computation."""
    project: Project
    tasks_by_id: Dict[str, Task]
    indexes: CatalogIndexes
    materials: Tuple[Material, ...] = field(default_factory=tuple)
    receipts: Tuple[MaterialReceipt, ...] = field(default_factory=tuple)
    snapshots: Tuple[Snapshot, ...] = field(default_factory=tuple)

    def task(self, task_id: str) -> Task:
        task = self.tasks_by_id.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def item(self, item_id: str):
        item = self.project.find_item(item_id)
        if item is None:
            raise BudgetItemNotFoundError(item_id, self.project.id)
        return item

    @property
    def baseline(self) -> Optional[Snapshot]:
        """Oldest price snapshot, used as the baseline."""
        if not self.snapshots:
            return None
        return min(self.snapshots, key=lambda s: s.date)


class SnapshotLoader:
    """
    Loads a catalog/project snapshot file into domain entities.

    Handles missing sections as empty lists; a missing project or a
    malformed record raises SnapshotLoadError.
    """

    def __init__(self, path: str):
        """
        Initialize loader.

        Args:
            path: YAML or JSON snapshot file
        """
        self.path = Path(path)

    def read(self) -> dict:
        """Read the raw document."""
        if not self.path.exists():
            raise SnapshotLoadError(str(self.path), "file not found")
        try:
            with open(self.path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise SnapshotLoadError(str(self.path), f"invalid YAML: {e}")

        if not isinstance(data, dict):
            raise SnapshotLoadError(str(self.path), "document must be a mapping")
        return data

    def load(self) -> EstimatorSnapshot:
        """Load and index the snapshot."""
        data = self.read()
        if not data.get('project'):
            raise SnapshotLoadError(str(self.path), "missing 'project' section")

        try:
            materials = self._build(data, 'materials', Material)
            tools = self._build(data, 'tools', Tool)
            labor_categories = self._build(data, 'labor_categories', LaborCategory)
            crews = self._build(data, 'crews', Crew)
            tasks = self._build(data, 'tasks', Task)
            material_yields = self._build(data, 'material_yields', MaterialYield)
            tool_yields = self._build(data, 'tool_yields', ToolYield)
            crew_yields = self._build(data, 'crew_yields', CrewYield)
            receipts = self._build(data, 'receipts', MaterialReceipt)
            snapshots = self._build(data, 'snapshots', Snapshot)
            project = Project.from_dict(data['project'])
        except (KeyError, TypeError, ValueError) as e:
            raise SnapshotLoadError(str(self.path), f"malformed record: {e!r}")

        indexes = build_indexes(
            materials, tools, labor_categories, crews,
            material_yields, tool_yields, crew_yields,
        )
        logger.info(
            f"Loaded snapshot {self.path.name}: {len(tasks)} tasks, "
            f"{len(project.items)} budget items, {len(receipts)} receipts"
        )
        return EstimatorSnapshot(
            project=project,
            tasks_by_id={t.id: t for t in tasks},
            indexes=indexes,
            materials=tuple(materials),
            receipts=tuple(receipts),
            snapshots=tuple(snapshots),
        )

    @staticmethod
    def _build(data: dict, section: str, entity_cls) -> List:
        records = data.get(section) or []
        if not isinstance(records, list):
            raise TypeError(f"section '{section}' must be a list")
        return [entity_cls.from_dict(record) for record in records]


def load_snapshot(path: str) -> EstimatorSnapshot:
    """Convenience wrapper around SnapshotLoader."""
    return SnapshotLoader(path).load()
