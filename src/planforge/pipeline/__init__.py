from src.planforge.pipeline.aggregator import aggregate_notes, format_timestamp
from src.planforge.pipeline.generator import Generator, GeneratorClient
from src.planforge.pipeline.locks import PipelineLocks
from src.planforge.pipeline.progress import PipelineState, ProgressChannel, ProgressEvent
from src.planforge.pipeline.status import (
    TaskCounts,
    completion_percent,
    project_status,
    subproject_mode,
    task_counts,
)
from src.planforge.pipeline.task_parser import ParsedTask, parse_task_markdown, render_task_markdown

__all__ = [
    "Generator",
    "GeneratorClient",
    "ParsedTask",
    "PipelineLocks",
    "PipelineState",
    "ProgressChannel",
    "ProgressEvent",
    "TaskCounts",
    "aggregate_notes",
    "completion_percent",
    "format_timestamp",
    "parse_task_markdown",
    "project_status",
    "render_task_markdown",
    "subproject_mode",
    "task_counts",
]
