"""
Handshake retry state for the tracker server connection.
"""

import time
from enum import Enum, auto
from typing import Callable


class LivenessState(Enum):
    """Whether the server has ever answered."""
    NO_RESPONSE_SEEN = auto()
    RESPONSE_SEEN = auto()


class LivenessTracker:
    """
    Decides when the handshake has to be resent.

    While no datagram has been received from the server a retry is due every
    ``retry_interval`` seconds. The first check is due immediately. Once any
    datagram arrives the tracker stays in RESPONSE_SEEN for good.
    """

    def __init__(self, retry_interval: float = 3.0,
                 clock: Callable[[], float] = time.monotonic):
        self._retry_interval = retry_interval
        self._clock = clock
        self._state = LivenessState.NO_RESPONSE_SEEN
        self._last_attempt = clock() - 60.0
        self._attempts = 0

    @property
    def state(self) -> LivenessState:
        return self._state

    @property
    def response_seen(self) -> bool:
        return self._state is LivenessState.RESPONSE_SEEN

    @property
    def attempts(self) -> int:
        """Number of handshake resends so far."""
        return self._attempts

    @property
    def retry_interval(self) -> float:
        return self._retry_interval

    def due(self) -> bool:
        """True if a liveness check and possible resend should run now."""
        if self.response_seen:
            return False
        return self._clock() - self._last_attempt >= self._retry_interval

    def mark_response(self):
        self._state = LivenessState.RESPONSE_SEEN

    def mark_attempt(self):
        self._last_attempt = self._clock()
        self._attempts += 1
