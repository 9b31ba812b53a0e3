from .base import Base
from .planning_models import Project, BoqActivity, Kpi
from .cost_control_models import HiredManpower, OtherCost, RentedEquipment, Transportation

__all__ = [
    "Base",
    "Project",
    "BoqActivity",
    "Kpi",
    "HiredManpower",
    "OtherCost",
    "RentedEquipment",
    "Transportation",
]
