import threading
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from .errors import RunSupersededError


class GenerationController:
    """
    Tracks the latest run so that a slow, stale run cannot overwrite the
    result of a newer one.

    Every `begin()` issues a larger token and supersedes all earlier ones.
    Workers check `is_current()` between stages and write shared output inside
    `hold()`; the caller publishes through `commit()`, which refuses stale
    tokens.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._latest = 0
        self._committed_token: Optional[int] = None
        self._result: Any = None

    def begin(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    @property
    def latest(self) -> int:
        with self._lock:
            return self._latest

    def is_current(self, token: int) -> bool:
        with self._lock:
            return token == self._latest

    @contextmanager
    def hold(self, token: int) -> Iterator[None]:
        """
        Keep `token` current for the duration of the block.

        Raises RunSupersededError if it is already stale; `begin()` calls
        from other threads wait until the block exits.
        """
        with self._lock:
            if token != self._latest:
                raise RunSupersededError(token, self._latest)
            yield

    def commit(self, token: int, result: Any) -> bool:
        """Store `result` if `token` is still the latest; return whether it was."""
        with self._lock:
            if token != self._latest:
                return False
            self._committed_token = token
            self._result = result
            return True

    @property
    def result(self) -> Any:
        """Most recently committed result, or None."""
        with self._lock:
            return self._result

    @property
    def committed_token(self) -> Optional[int]:
        with self._lock:
            return self._committed_token
