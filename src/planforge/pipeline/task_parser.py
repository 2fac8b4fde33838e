"""Parser for generated task markdown.

Expected layout::

    # Task 1: Title

    Description text...

    ## Subtasks
    - First subtask

    ## Acceptance Criteria
    - First criterion

Every level-1 heading starts a task. Task ids are derived from the titles so
that task statuses and comments, which are stored by id, keep pointing at the
same task when the markdown is parsed again.
"""

import re
from dataclasses import dataclass, field
from enum import Enum

_TASK_NUMBER = re.compile(r"^task\s*(\d+)", re.IGNORECASE)
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_EXPLICIT_ID_PATTERNS = (
    re.compile(r"\[task-id:\s*([^\]]+)\]", re.IGNORECASE),
    re.compile(r"<!--\s*task-id:\s*(.+?)\s*-->", re.IGNORECASE),
    re.compile(r"task[_\s]*id[_\s]*[:=]\s*(\S+)", re.IGNORECASE),
)
SLUG_MAX_LENGTH = 30


class _Section(Enum):
    DESCRIPTION = "description"
    SUBTASKS = "subtasks"
    ACCEPTANCE = "acceptance"


@dataclass(frozen=True)
class ParsedTask:
    """One task extracted from task markdown."""

    markdown_id: str
    title: str
    description: str | None = None
    subtasks: list[str] = field(default_factory=list)
    acceptance_criteria: list[str] = field(default_factory=list)


@dataclass
class _TaskBuilder:
    ordinal: int
    title: str
    description_lines: list[str] = field(default_factory=list)
    subtasks: list[str] = field(default_factory=list)
    acceptance_criteria: list[str] = field(default_factory=list)

    def build(self, markdown_id: str) -> ParsedTask:
        return ParsedTask(
            markdown_id=markdown_id,
            title=self.title,
            description="\n".join(self.description_lines) or None,
            subtasks=list(self.subtasks),
            acceptance_criteria=list(self.acceptance_criteria),
        )


def slugify(title: str) -> str:
    """Lowercase, collapse non-alphanumerics to '-', trim, then cut to 30 characters.

    The cut comes last, so a slug may end in '-'; stored statuses and
    comments are keyed on ids built this way.
    """
    slug = _NON_ALNUM.sub("-", title.lower()).strip("-")
    return slug[:SLUG_MAX_LENGTH]


def derive_task_id(ordinal: int, title: str) -> str:
    """Id for a task title: task-<N> for "Task N..." titles, else ordinal plus slug."""
    match = _TASK_NUMBER.match(title)
    if match:
        return f"task-{match.group(1)}"
    return f"task-{ordinal}-{slugify(title)}"


def parse_task_markdown(markdown: str | None) -> list[ParsedTask]:
    """Parse task markdown into tasks, in document order.

    Never raises: input without any level-1 heading yields an empty list and
    lines that fit no rule are skipped. Lines are compared trimmed, so
    indentation and trailing whitespace do not change the result.
    """
    if not markdown:
        return []

    builders: list[_TaskBuilder] = []
    current: _TaskBuilder | None = None
    section = _Section.DESCRIPTION

    for raw_line in markdown.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        if line.startswith("# "):
            title = line[2:].strip()
            if not title:
                current = None
                continue
            current = _TaskBuilder(ordinal=len(builders) + 1, title=title)
            builders.append(current)
            section = _Section.DESCRIPTION
            continue

        if current is None:
            continue

        if line.startswith("## "):
            section = _classify_section(line[3:])
        elif line.startswith(("- ", "* ")):
            item = line[2:].strip()
            if not item:
                continue
            if section is _Section.SUBTASKS:
                current.subtasks.append(item)
            elif section is _Section.ACCEPTANCE:
                current.acceptance_criteria.append(item)
        elif section is _Section.DESCRIPTION:
            current.description_lines.append(line)

    return _assign_ids(builders)


def render_task_markdown(tasks: list[ParsedTask]) -> str:
    """Render tasks back into the canonical task markdown layout."""
    blocks: list[str] = []
    for task in tasks:
        lines = [f"# {task.title}"]
        if task.description:
            lines += ["", task.description]
        if task.subtasks:
            lines += ["", "## Subtasks"] + [f"- {item}" for item in task.subtasks]
        if task.acceptance_criteria:
            lines += ["", "## Acceptance Criteria"] + [
                f"- {item}" for item in task.acceptance_criteria
            ]
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + "\n" if blocks else ""


def extract_task_id(markdown: str, title: str) -> str:
    """Find an explicit task id annotation, falling back to the title-derived id.

    Recognised annotations: ``[task-id: x]``, ``<!-- task-id: x -->`` and
    ``task_id: x``.
    """
    for pattern in _EXPLICIT_ID_PATTERNS:
        match = pattern.search(markdown)
        if match:
            return match.group(1).strip()
    return derive_task_id(0, title)


def task_ids(markdown: str | None) -> list[str]:
    return [task.markdown_id for task in parse_task_markdown(markdown)]


def _classify_section(heading: str) -> _Section:
    name = heading.lower()
    if "subtask" in name:
        return _Section.SUBTASKS
    if "acceptance" in name or "criteria" in name:
        return _Section.ACCEPTANCE
    return _Section.DESCRIPTION


def _assign_ids(builders: list[_TaskBuilder]) -> list[ParsedTask]:
    seen: set[str] = set()
    tasks: list[ParsedTask] = []
    for builder in builders:
        markdown_id = derive_task_id(builder.ordinal, builder.title)
        if markdown_id in seen:
            markdown_id = f"{markdown_id}-{builder.ordinal}"
            # A suffixed id can itself collide with a literal title further up
            while markdown_id in seen:
                markdown_id = f"{markdown_id}-{builder.ordinal}"
        seen.add(markdown_id)
        tasks.append(builder.build(markdown_id))
    return tasks
