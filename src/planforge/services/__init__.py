from src.planforge.services.lifecycle_service import LifecycleController
from src.planforge.services.store_gateway import StoreGateway, translate_error
from src.planforge.services.task_service import TaskService, TaskSummary, TaskView

__all__ = [
    "LifecycleController",
    "StoreGateway",
    "TaskService",
    "TaskSummary",
    "TaskView",
    "translate_error",
]
