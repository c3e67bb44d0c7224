from __future__ import annotations

import threading
import time
from typing import Callable

DEFAULT_COOLDOWN_SECONDS = 20


class CommentCooldown:
    """Per-client, per-place posting cooldown.

    Kept apart from the comment store: the store accepts every valid comment,
    and callers decide whether to consult this tracker first.
    """

    def __init__(
        self,
        seconds: float = DEFAULT_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.seconds = seconds
        self._clock = clock
        self._until: dict[tuple[str, str], float] = {}
        self._lock = threading.Lock()

    def remaining(self, client_key: str, place_id: str) -> float:
        """Seconds left before ``client_key`` may post on ``place_id`` again."""
        with self._lock:
            until = self._until.get((client_key, place_id))
            if until is None:
                return 0.0
            left = until - self._clock()
            if left <= 0:
                del self._until[(client_key, place_id)]
                return 0.0
            return left

    def can_submit(self, client_key: str, place_id: str) -> bool:
        return self.remaining(client_key, place_id) == 0.0

    def record(self, client_key: str, place_id: str) -> float:
        """Start the window after a successful post; returns its end time."""
        with self._lock:
            until = self._clock() + self.seconds
            self._until[(client_key, place_id)] = until
            return until

    def clear(self) -> None:
        with self._lock:
            self._until.clear()
