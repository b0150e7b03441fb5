"""
Duration estimation for budget items.

Duration follows the method-and-time-study approach:
- Crews assigned work in parallel ("fronts")
- Efficiency factor rates the pace (1.0 normal, 1.2 fast, 0.8 slow)
- Allowances (fatigue, needs, contingencies) lengthen standard time

Formula:
    normal_output = daily_yield * crews * efficiency
    effective_output = normal_output / (1 + allowance / 100)
    duration = ceil(quantity / effective_output)

A task without a positive daily yield has no computable duration; callers
receive None (or a flag) instead of infinity.
"""
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional, Sequence
import logging

from estimator.domain.entities import BudgetItem, Project, Task
from .calendar import DEFAULT_WORKING_DAYS, add_days, add_working_days

logger = logging.getLogger(__name__)


def calculate_duration(
    quantity: float,
    daily_yield: float,
    crews: int = 1,
    efficiency_factor: float = 1.0,
    allowance_percent: float = 0.0,
) -> Optional[int]:
    """
    Days needed to produce `quantity` units.

    Returns:
        Whole days (0 for zero quantity), or None when the yield is not positive
    """
    if not daily_yield or daily_yield <= 0:
        return None
    efficiency = efficiency_factor if efficiency_factor and efficiency_factor > 0 else 1.0
    normal_output = daily_yield * max(1, crews) * efficiency
    effective_output = normal_output / (1 + (allowance_percent or 0.0) / 100)
    return math.ceil(max(0.0, quantity) / effective_output)


@dataclass(frozen=True)
class ItemSchedule:
    """
    Planned window of a budget item.

    `end` is exclusive: the item is fully planned once the as-of date
    reaches it. A zero-duration item has end == start.
    """
    start: date
    end: date
    duration_days: int
    computable: bool = True

    @property
    def span_days(self) -> int:
        return (self.end - self.start).days


def schedule_item(
    item: BudgetItem,
    task: Task,
    project: Project,
    calendar_mode: str = "calendar",
    default_working_days: Sequence[int] = DEFAULT_WORKING_DAYS,
) -> ItemSchedule:
    """
    Compute the planned window of a budget item.

    Manual duration wins over the yield-based estimate. When neither is
    available the schedule is flagged as not computable and treated as a
    zero-duration item at its start date. In working mode the project's
    own weekdays win over `default_working_days`.
    """
    start = item.start_date or project.start_date

    if item.manual_duration is not None:
        duration = max(0, int(item.manual_duration))
        computable = True
    else:
        duration = calculate_duration(
            item.effective_quantity,
            task.daily_yield,
            item.crew_count,
            item.efficiency_factor,
            item.allowance_percent,
        )
        computable = duration is not None
        if not computable:
            logger.debug(f"Item {item.id}: task {task.id} has no daily yield, duration not computable")
            duration = 0

    if calendar_mode == "working" and duration > 0:
        last_day = add_working_days(
            start,
            duration,
            project.working_days if project.working_days is not None else default_working_days,
            project.holidays,
        )
        end = last_day + timedelta(days=1)
    else:
        end = add_days(start, duration)

    return ItemSchedule(start=start, end=end, duration_days=duration, computable=computable)
