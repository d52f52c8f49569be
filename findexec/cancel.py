"""
findexec Cancellation - SIGINT as a cooperative cancel flag.

Responsibilities:
- Set a single flag when SIGINT arrives; nothing else runs in the handler
- Install/restore the handler around a run

Invariants:
- The flag is never cleared during a run
- Readers take a snapshot at their poll point; nothing is preempted
"""

import signal
import threading
from contextlib import contextmanager

from findexec.log import get_logger


logger = get_logger(__name__)


class CancelFlag:
    """Process-wide cancellation flag backed by a threading.Event."""

    def __init__(self):
        self._event = threading.Event()

    def set(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    def _handle(self, signum, frame) -> None:
        self._event.set()

    @contextmanager
    def installed(self, signum: int = signal.SIGINT):
        """
        Route signum to this flag for the duration of the block.

        Note:
            Must be entered from the main thread (a signal module rule).
            The previous handler is restored on exit.
        """
        previous = signal.signal(signum, self._handle)
        logger.debug("cancellation handler installed for %s", signal.Signals(signum).name)
        try:
            yield self
        finally:
            signal.signal(signum, previous)
