"""
BOQ value calculations.

Rate = Total Value / Total Units
Value (earned) = Rate x Actual Units
Progress = Actual Units / Planned Units x 100
Project progress = total earned value / total planned value x 100
"""
from dataclasses import dataclass, field, asdict
from typing import Dict, Iterable, List

from models.domain import ActivityRecord


@dataclass
class BoqValues:
    rate: float
    value: float
    progress: float
    total_value: float
    planned_value: float
    earned_value: float
    remaining_value: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class ActivityProgress:
    activity_id: str
    activity_description: str
    planned_value: float
    earned_value: float
    progress: float


@dataclass
class ProjectProgress:
    total_project_value: float = 0.0
    total_earned_value: float = 0.0
    progress: float = 0.0
    activities: List[ActivityProgress] = field(default_factory=list)


def calculate_rate(total_value: float, total_units: float) -> float:
    return total_value / total_units if total_units > 0 else 0.0


def calculate_progress(actual_units: float, planned_units: float) -> float:
    return actual_units / planned_units * 100 if planned_units > 0 else 0.0


def calculate_boq_values(total_units: float, planned_units: float,
                         actual_units: float, total_value: float) -> BoqValues:
    rate = calculate_rate(total_value, total_units)
    earned = rate * actual_units
    return BoqValues(
        rate=rate,
        value=earned,
        progress=calculate_progress(actual_units, planned_units),
        total_value=total_value,
        planned_value=rate * planned_units,
        earned_value=earned,
        remaining_value=rate * (total_units - actual_units),
    )


def calculate_project_progress(activities: Iterable[ActivityRecord]) -> ProjectProgress:
    """Earned-value progress across a set of activities."""
    result = ProjectProgress()
    for activity in activities:
        values = calculate_boq_values(
            activity.total_units, activity.planned_units,
            activity.actual_units, activity.total_value,
        )
        result.total_project_value += values.planned_value
        result.total_earned_value += values.earned_value
        result.activities.append(ActivityProgress(
            activity_id=activity.id or "",
            activity_description=activity.activity_description,
            planned_value=values.planned_value,
            earned_value=values.earned_value,
            progress=(values.earned_value / values.planned_value * 100) if values.planned_value > 0 else 0.0,
        ))

    if result.total_project_value > 0:
        result.progress = result.total_earned_value / result.total_project_value * 100
    return result
