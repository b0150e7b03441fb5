"""
Material Stock Status - budgeted vs received quantities per material.

For every catalog material touched by the budget or by a receipt:
    budgeted = sum(yield quantity * item quantity) over budget items
    received = sum(quantity received) over receipts
    pending  = max(0, budgeted - received)

Receipt lines may also carry the quantity stated on the delivery note;
the gap between what arrived and what was declared is reported as a
discrepancy. Lines without a declared quantity count as declared in full.
"""
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional
import logging

import pandas as pd

from estimator.domain.entities import MaterialReceipt, Project
from .catalog_index import CatalogIndexes

logger = logging.getLogger(__name__)

QUANTITY_TOLERANCE = 1e-9


@dataclass(frozen=True)
class MaterialStockStatus:
    material_id: str
    name: str
    unit: str
    budgeted: float
    received: float
    declared: float
    pending: float

    @property
    def discrepancy(self) -> float:
        """Received minus declared; negative means short delivery."""
        return self.received - self.declared

    @property
    def has_discrepancy(self) -> bool:
        return abs(self.discrepancy) > QUANTITY_TOLERANCE

    def to_dict(self) -> dict:
        return {**self.__dict__, 'discrepancy': self.discrepancy}


def material_stock_status(
    project: Project,
    indexes: CatalogIndexes,
    receipts: Iterable[MaterialReceipt] = (),
    as_of: Optional[date] = None,
) -> List[MaterialStockStatus]:
    """
    Compare budgeted material quantities with what has been received.

    Args:
        project: Project with its budget items
        indexes: Catalog indexes (materials and material yields)
        receipts: Material receipts
        as_of: Ignore receipts dated after this day (None counts all)

    Returns:
        One status per material, sorted by pending quantity descending
    """
    materials = indexes.materials_by_id
    budgeted = defaultdict(float)
    received = defaultdict(float)
    declared = defaultdict(float)

    for item in project.items:
        if item.task_id is None:
            continue
        for record in indexes.material_yields_for(item.task_id):
            if record.material_id not in materials:
                continue
            budgeted[record.material_id] += record.quantity * item.effective_quantity

    for receipt in receipts:
        if as_of is not None and receipt.date > as_of:
            continue
        for line in receipt.lines:
            if line.material_id not in materials:
                logger.debug(f"Receipt {receipt.id}: unknown material {line.material_id} skipped")
                continue
            received[line.material_id] += line.quantity_received
            if line.quantity_declared is not None:
                declared[line.material_id] += line.quantity_declared
            else:
                declared[line.material_id] += line.quantity_received

    material_ids = list(budgeted) + [m for m in received if m not in budgeted]
    statuses = []
    for material_id in material_ids:
        material = materials[material_id]
        statuses.append(MaterialStockStatus(
            material_id=material_id,
            name=material.name,
            unit=material.unit,
            budgeted=budgeted[material_id],
            received=received[material_id],
            declared=declared[material_id],
            pending=max(0.0, budgeted[material_id] - received[material_id]),
        ))

    statuses.sort(key=lambda s: s.pending, reverse=True)
    return statuses


def stock_status_frame(statuses: Iterable[MaterialStockStatus]) -> pd.DataFrame:
    """Tabular view with a discrepancy column."""
    columns = list(MaterialStockStatus.__dataclass_fields__) + ['discrepancy']
    return pd.DataFrame([s.to_dict() for s in statuses], columns=columns)
