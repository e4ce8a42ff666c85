"""Per-thread record of the types currently being resolved.

Each thread sees only its own stack. A type may appear at most once on a
stack; requesting it again before its resolution finishes is a circular
dependency.
"""

import threading
from contextlib import contextmanager
from typing import Iterator

from beanbag.domain import TypeKey
from beanbag.errors import CircularDependencyError

__all__ = ["ResolutionStack"]


class ResolutionStack:
    def __init__(self):
        self._local = threading.local()

    def _frames(self) -> list[TypeKey]:
        if not hasattr(self._local, "frames"):
            self._local.frames = []
        return self._local.frames

    def current(self) -> tuple[TypeKey, ...]:
        """The calling thread's stack, first pushed first."""
        return tuple(self._frames())

    @contextmanager
    def frame(self, bean_type: TypeKey) -> Iterator[None]:
        """Hold ``bean_type`` on the calling thread's stack for the duration of the block.

        Raises:
            CircularDependencyError: If ``bean_type`` is already on the stack.
                Nothing is pushed in that case.
        """
        frames = self._frames()
        if bean_type in frames:
            raise CircularDependencyError(tuple(frames) + (bean_type,))

        frames.append(bean_type)
        try:
            yield
        finally:
            frames.pop()
