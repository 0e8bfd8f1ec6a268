"""Progress tracking utilities for the tool synchronizer.

The download executor reports to a ``ProgressTracker`` it is handed, never
to module-level state. Concrete trackers decide what (if anything) to show.
"""

import time
from abc import ABC, abstractmethod


class ProgressTracker(ABC):
    """Abstract base class for progress tracking.

    Subclasses implement concrete progress display in different environments
    (terminal, logging, silent).
    """

    def __init__(self, total_items: int = 0):
        """Initialize progress tracker.

        Args:
            total_items: Total number of items to process
        """
        self.total_items = total_items
        self.completed = 0
        self.failed = 0
        self.current_name = ""
        self.start_time = time.time()

    @property
    def processed(self) -> int:
        """Get total items processed (completed + failed)."""
        return self.completed + self.failed

    @property
    def remaining(self) -> int:
        """Get items remaining."""
        return self.total_items - self.processed

    @property
    def elapsed_seconds(self) -> float:
        """Get elapsed time in seconds since start."""
        return time.time() - self.start_time

    @property
    def progress_fraction(self) -> float:
        """Get progress as fraction (0.0 to 1.0)."""
        if self.total_items == 0:
            return 0.0
        return min(1.0, self.processed / self.total_items)

    @property
    def progress_percent(self) -> int:
        """Get progress as percentage (0 to 100)."""
        return int(self.progress_fraction * 100)

    def start_item(self, index: int, total: int, name: str) -> None:
        """Announce that item ``index`` (1-based) of ``total`` is starting."""
        self.total_items = total
        self.current_name = name
        self.show_item(index, total, name)

    def mark_completed(self, count: int = 1) -> None:
        """Mark items as completed successfully.

        Args:
            count: Number of items completed (default: 1)
        """
        self.completed += count
        self.update()

    def mark_failed(self, count: int = 1, error: str = "") -> None:
        """Mark items as failed.

        Args:
            count: Number of items failed (default: 1)
            error: Text of the underlying error, shown to the operator
        """
        self.failed += count
        self.show_failure(self.current_name, error)
        self.update()

    @abstractmethod
    def show_item(self, index: int, total: int, name: str) -> None:
        """Display the start of an item. Implemented by subclasses."""
        pass

    def show_failure(self, name: str, error: str) -> None:
        """Display a failed item. Subclasses that show output override this."""
        pass

    @abstractmethod
    def update(self) -> None:
        """Update progress display. Implemented by subclasses."""
        pass

    @abstractmethod
    def finish(self) -> None:
        """Finish progress tracking. Implemented by subclasses."""
        pass


class TerminalProgressTracker(ProgressTracker):
    """Progress tracker for terminal/CLI output.

    Prints one line per item with its position and the overall percentage.
    """

    def _format_bar(self, width: int = 30) -> str:
        """Generate progress bar string.

        Args:
            width: Width of progress bar in characters

        Returns:
            Progress bar string like "[=====>     ]"
        """
        filled = int(self.progress_fraction * width)
        empty = width - filled
        return "[" + "=" * filled + ">" + " " * max(0, empty - 1) + "]"

    def _format_elapsed(self) -> str:
        """Format elapsed time as human-readable string."""
        elapsed_sec = int(self.elapsed_seconds)
        minutes, seconds = divmod(elapsed_sec, 60)
        hours, minutes = divmod(minutes, 60)

        if hours > 0:
            return f"{hours}h {minutes:02d}m {seconds:02d}s"
        return f"{minutes}m {seconds:02d}s"

    def show_item(self, index: int, total: int, name: str) -> None:
        """Print ``[3/10]  20% Name.zip``."""
        pct = int((index - 1) / total * 100) if total else 0
        print(f"  [{index}/{total}] {pct:3d}% {name}", flush=True)

    def show_failure(self, name: str, error: str) -> None:
        """Print the failed item with the underlying error text."""
        print(f"    [FAIL] {name}: {error}", flush=True)

    def update(self) -> None:
        """Nothing to redraw; item lines are printed as they start."""
        pass

    def finish(self) -> None:
        """Print final summary."""
        bar = self._format_bar()
        print(f"\n{bar} {self.progress_percent}% - {self._format_elapsed()}")
        print(f"Downloaded: {self.completed}, Failed: {self.failed}")


class SilentProgressTracker(ProgressTracker):
    """Progress tracker that doesn't display anything.

    Useful for testing or when output should be suppressed.
    """

    def show_item(self, index: int, total: int, name: str) -> None:
        """No-op item display."""
        pass

    def update(self) -> None:
        """No-op update."""
        pass

    def finish(self) -> None:
        """No-op finish."""
        pass
