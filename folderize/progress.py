"""Progress tracking context for folderize passes."""

from typing import Optional
from rich.progress import Progress, TaskID


class ProgressContext:
    """Progress bar handle plus the (i/n) batch position used in log lines."""

    def __init__(self, progress: Optional[Progress] = None, task: Optional[TaskID] = None,
                 total: int = 0):
        self.progress = progress
        self.task = task
        self.total = total
        self.completed = 0

    @property
    def is_active(self) -> bool:
        return self.progress is not None and self.task is not None

    @property
    def position(self) -> str:
        """Batch position of the item currently being handled, e.g. '(3/10)'."""
        return f"({self.completed + 1}/{self.total})"

    def update(self, description: str) -> None:
        if self.is_active:
            self.progress.update(self.task, description=description)

    def advance(self, steps: int = 1) -> None:
        self.completed += steps
        if self.is_active:
            self.progress.advance(self.task, steps)
