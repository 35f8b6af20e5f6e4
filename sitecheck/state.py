"""
Debounced outage state machine per endpoint.
States: UNKNOWN (initial only), UP, DOWN.
DOWN alert fires once per outage, when the consecutive-down count first reaches the retry threshold.
UP-again alert fires once, only if the outage was alerted. Blips below the threshold are forgotten.
Pure decision logic: update() returns the event, the monitor loop dispatches it.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional


class State(Enum):
    UNKNOWN = "unknown"
    UP = "up"
    DOWN = "down"


class EventKind(Enum):
    DOWN_ALERT = "down"
    UP_AGAIN_ALERT = "up_again"


@dataclass(frozen=True)
class NotificationEvent:
    kind: EventKind
    endpoint: str
    count: int  # consecutive down cycles when decided


class UnknownEndpointError(KeyError):
    """update() called for an endpoint that was never configured."""


class EndpointState:
    """Per-endpoint counters. Mutated only by EndpointTracker.update (single writer)."""

    __slots__ = ("state", "count", "notified")

    def __init__(self) -> None:
        self.state = State.UNKNOWN
        self.count = 0
        self.notified = False

    def __repr__(self) -> str:
        return f"EndpointState(state={self.state.name}, count={self.count}, notified={self.notified})"


class EndpointTracker:
    def __init__(self, endpoints: Iterable[str], retry_threshold: int) -> None:
        if retry_threshold < 1:
            raise ValueError("retry_threshold must be >= 1")
        self.retry_threshold = retry_threshold
        self._states: dict[str, EndpointState] = {e: EndpointState() for e in endpoints}

    @property
    def endpoints(self) -> list[str]:
        return list(self._states)

    def get(self, endpoint: str) -> EndpointState:
        try:
            return self._states[endpoint]
        except KeyError:
            raise UnknownEndpointError(endpoint) from None

    def snapshot(self) -> dict[str, State]:
        """Current belief per endpoint, for logging/diagnostics."""
        return {e: s.state for e, s in self._states.items()}

    def update(self, endpoint: str, raw_status: State) -> Optional[NotificationEvent]:
        """
        Feed the latest probe classification (UP or DOWN) for one endpoint.
        Returns the notification to send, if this observation warrants one.
        """
        st = self.get(endpoint)
        if raw_status is State.DOWN:
            st.count += 1
            st.state = State.DOWN
            if st.count == self.retry_threshold and not st.notified:
                st.notified = True
                return NotificationEvent(EventKind.DOWN_ALERT, endpoint, st.count)
            return None
        if raw_status is State.UP:
            event = None
            if st.notified:
                st.notified = False
                event = NotificationEvent(EventKind.UP_AGAIN_ALERT, endpoint, st.count)
            st.count = 0
            st.state = State.UP
            return event
        raise ValueError(f"raw status must be UP or DOWN, got {raw_status!r}")
