"""One-way diagnostic channel from native constructors to the host.

Messages are plain strings.  The channel is an unbounded, thread-safe queue:
any number of senders (one per sandbox, typically) may feed a single
receiver, which the host drains from whichever thread owns its UI.

    sender, receiver = channel()
    result = evaluate(script, console=sender)
    for message in receiver.drain():
        print(message)
"""

from __future__ import annotations

import logging
import queue
from typing import Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)


class Sender:
    """Producing end of a channel."""

    def __init__(self, q: "queue.SimpleQueue[str]"):
        self._queue = q

    def send(self, message: str) -> None:
        self._queue.put(str(message))


class Receiver:
    """Consuming end of a channel."""

    def __init__(self, q: "queue.SimpleQueue[str]"):
        self._queue = q

    def recv(self, timeout: Optional[float] = None) -> str:
        """Block for the next message; raises ``queue.Empty`` on timeout."""
        return self._queue.get(timeout=timeout)

    def try_recv(self) -> Optional[str]:
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def drain(self) -> List[str]:
        """All messages currently queued, in the order they were sent."""
        return list(iter(self))

    def __iter__(self) -> Iterator[str]:
        while True:
            message = self.try_recv()
            if message is None:
                return
            yield message


def channel() -> Tuple[Sender, Receiver]:
    q: "queue.SimpleQueue[str]" = queue.SimpleQueue()
    return Sender(q), Receiver(q)


class LoggingSender:
    """Sender used when the host supplies none: messages go to the log."""

    def send(self, message: str) -> None:
        logger.warning("%s", message)
