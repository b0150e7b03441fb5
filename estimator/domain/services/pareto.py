"""
Pareto / ABC Classifier - ranks budget items by cost significance.

Items are sorted by total cost (descending) and accumulated:
    cumulative % <= 80  -> A
    cumulative % <= 95  -> B
    otherwise           -> C
"""
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple
import logging

import numpy as np
import pandas as pd

from estimator.config import get_config
from estimator.domain.entities import Project, Task
from .catalog_index import CatalogIndexes
from .unit_price import price_budget_items

logger = logging.getLogger(__name__)

ABC_CLASSES = ('A', 'B', 'C')


@dataclass(frozen=True)
class ParetoItem:
    item_id: str
    task_id: str
    name: str
    category: str
    unit: str
    quantity: float
    cost: float
    percentage: float
    cumulative_percentage: float
    abc_class: str


@dataclass(frozen=True)
class ClassStats:
    count: int = 0
    cost: float = 0.0
    percentage: float = 0.0  # share of item count


@dataclass(frozen=True)
class ParetoResult:
    ranked_items: Tuple[ParetoItem, ...] = field(default_factory=tuple)
    class_stats: Dict[str, ClassStats] = field(default_factory=dict)
    total_cost: float = 0.0

    def items_in(self, abc_class: str) -> List[ParetoItem]:
        return [i for i in self.ranked_items if i.abc_class == abc_class]

    def to_frame(self) -> pd.DataFrame:
        columns = list(ParetoItem.__dataclass_fields__)
        return pd.DataFrame([i.__dict__ for i in self.ranked_items], columns=columns)


def rank_costs(
    frame: pd.DataFrame,
    thresholds: Tuple[float, float] = (80.0, 95.0),
) -> pd.DataFrame:
    """
    Add percentage, cumulative_percentage and abc_class columns.

    Args:
        frame: DataFrame with a 'cost' column
        thresholds: Cumulative percentage limits of classes A and B

    Returns:
        New DataFrame sorted by cost descending
    """
    ranked = frame.sort_values('cost', ascending=False, kind='mergesort').reset_index(drop=True)
    total = float(ranked['cost'].sum()) if len(ranked) else 0.0

    if total > 0:
        ranked['percentage'] = ranked['cost'] * 100 / total
        ranked['cumulative_percentage'] = ranked['cost'].cumsum() * 100 / total
    else:
        ranked['percentage'] = 0.0
        ranked['cumulative_percentage'] = 0.0

    class_a_max, class_b_max = thresholds
    cumulative = ranked['cumulative_percentage'].to_numpy()
    ranked['abc_class'] = np.select(
        [cumulative <= class_a_max, cumulative <= class_b_max],
        ['A', 'B'],
        default='C',
    )
    return ranked


def classify_pareto(
    project: Project,
    tasks_by_id: Mapping[str, Task],
    indexes: CatalogIndexes,
    thresholds: Optional[Tuple[float, float]] = None,
) -> ParetoResult:
    """
    ABC classification of the project's budget items.

    Returns:
        ParetoResult with ranked items and per-class count, cost and
        share of item count
    """
    thresholds = thresholds or get_config().pareto_thresholds
    priced = price_budget_items(project, tasks_by_id, indexes)

    columns = ['item_id', 'task_id', 'name', 'category', 'unit', 'quantity', 'cost']
    frame = pd.DataFrame(
        [
            {
                'item_id': p.item.id,
                'task_id': p.task.id,
                'name': p.task.name,
                'category': p.task.category,
                'unit': p.task.unit,
                'quantity': p.quantity,
                'cost': p.total_cost,
            }
            for p in priced
        ],
        columns=columns,
    )
    frame['cost'] = frame['cost'].astype(float)
    ranked = rank_costs(frame, thresholds)

    ranked_items = tuple(
        ParetoItem(
            item_id=row.item_id,
            task_id=row.task_id,
            name=row.name,
            category=row.category,
            unit=row.unit,
            quantity=float(row.quantity),
            cost=float(row.cost),
            percentage=float(row.percentage),
            cumulative_percentage=float(row.cumulative_percentage),
            abc_class=str(row.abc_class),
        )
        for row in ranked.itertuples(index=False)
    )

    total_count = len(ranked_items)
    stats = {}
    for abc_class in ABC_CLASSES:
        members = [i for i in ranked_items if i.abc_class == abc_class]
        stats[abc_class] = ClassStats(
            count=len(members),
            cost=sum(i.cost for i in members),
            percentage=len(members) * 100 / total_count if total_count else 0.0,
        )

    logger.debug(
        f"Pareto for project {project.id}: "
        + ", ".join(f"{c}={stats[c].count}" for c in ABC_CLASSES)
    )
    return ParetoResult(
        ranked_items=ranked_items,
        class_stats=stats,
        total_cost=sum(i.cost for i in ranked_items),
    )
