"""
In-process message channel between a converter and its consumer.

- post_message() delivers synchronously to the attached handler
- Without a handler, messages are kept in FIFO order until drain()
- Handler exceptions propagate to the poster
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Deque, Optional

from protocol.messages import PortMessage

MessageHandler = Callable[[PortMessage], None]


class MessagePort:
    """
    Single-consumer message port.

    Delivery order equals post order, whether messages are handled
    immediately or drained later.
    """

    def __init__(self) -> None:
        self._pending: Deque[PortMessage] = deque()
        self._on_message: Optional[MessageHandler] = None
        self.posted: int = 0

    @property
    def on_message(self) -> Optional[MessageHandler]:
        return self._on_message

    @on_message.setter
    def on_message(self, handler: Optional[MessageHandler]) -> None:
        self._on_message = handler
        if handler is None:
            return
        # Hand over anything posted before the consumer attached.
        while self._pending:
            handler(self._pending.popleft())

    def post_message(self, message: PortMessage) -> None:
        self.posted += 1
        if self._on_message is not None:
            self._on_message(message)
            return
        self._pending.append(message)

    def drain(self) -> list[PortMessage]:
        """Return and clear messages buffered while no handler was attached."""
        out = list(self._pending)
        self._pending.clear()
        return out

    def close(self) -> None:
        """Detach the handler and drop pending messages."""
        self._on_message = None
        self._pending.clear()

    def __len__(self) -> int:
        return len(self._pending)
