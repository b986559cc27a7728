"""
Minimal callback signals used by blog clients to notify callers.
"""

import logging
from typing import Any, Callable, List


class Signal:
    """
    A named list of receivers invoked in connection order.

    Receivers are plain callables; exceptions raised by a receiver
    propagate to whoever emitted the signal.
    """

    def __init__(self, name: str):
        self.name = name
        self._receivers: List[Callable[..., Any]] = []
        self.logging = logging.getLogger(__name__)

    def connect(self, receiver: Callable[..., Any]) -> None:
        """Register a receiver. Connecting the same receiver twice is a no-op."""
        if receiver not in self._receivers:
            self._receivers.append(receiver)

    def disconnect(self, receiver: Callable[..., Any]) -> None:
        """Remove a receiver if it is connected."""
        if receiver in self._receivers:
            self._receivers.remove(receiver)

    def emit(self, *args: Any) -> None:
        """Call every receiver with the given arguments."""
        # Receivers may disconnect themselves while we iterate.
        for receiver in list(self._receivers):
            receiver(*args)

    @property
    def receivers(self) -> List[Callable[..., Any]]:
        return list(self._receivers)

    def __repr__(self) -> str:
        return f"Signal({self.name!r}, receivers={len(self._receivers)})"
