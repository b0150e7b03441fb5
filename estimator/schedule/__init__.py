"""Schedule duration, calendar and progress-curve helpers"""
from .calendar import DEFAULT_WORKING_DAYS, add_days, add_working_days, diff_days, is_working_day
from .curves import CostCurve, smoothstep, cumulative_progress
from .duration import ItemSchedule, calculate_duration, schedule_item

__all__ = [
    'DEFAULT_WORKING_DAYS', 'add_days', 'add_working_days', 'diff_days', 'is_working_day',
    'CostCurve', 'smoothstep', 'cumulative_progress',
    'ItemSchedule', 'calculate_duration', 'schedule_item',
]
