"""Progress reporting primitives.

Long-running operations (grid searches) optionally accept a progress callback.
Notebooks and scripts adapt their own progress bars to this protocol.
"""

from __future__ import annotations

from typing import Optional, Protocol


class ProgressCallback(Protocol):
    """A minimal progress reporting interface."""

    def init(self, *, total: int, label: Optional[str] = None) -> None:  # pragma: no cover
        ...

    def update(self, *, current: int, label: Optional[str] = None) -> None:  # pragma: no cover
        ...

    def finalize(self, *, label: Optional[str] = None) -> None:  # pragma: no cover
        ...
