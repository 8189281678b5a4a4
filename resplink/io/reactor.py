from __future__ import annotations

import selectors
import time
from typing import Any, Callable, Protocol

from resplink.sansio.types import ReadyCallbackT

__all__ = ("EVENT_READ", "EVENT_WRITE", "Reactor", "SelectorReactor")

EVENT_READ = selectors.EVENT_READ
EVENT_WRITE = selectors.EVENT_WRITE


class Reactor(Protocol):
    """An externally owned readiness notifier.

    The signatures follow :py:class:`selectors.BaseSelector`. ``data`` is the
    callback the reactor invokes with the ready event mask.
    """

    def register(self, fileobj: Any, events: int, data: ReadyCallbackT) -> Any:
        ...

    def modify(self, fileobj: Any, events: int, data: ReadyCallbackT) -> Any:
        ...

    def unregister(self, fileobj: Any) -> Any:
        ...


class SelectorReactor:
    """A minimal :py:class:`Reactor` over :py:mod:`selectors`.

    The owner drives it by calling :py:meth:`poll` (or :py:meth:`run_until`)
    from its own loop; ready callbacks run on that thread.
    """

    __slots__ = ("selector",)

    def __init__(self, selector: selectors.BaseSelector | None = None):
        self.selector = selector or selectors.DefaultSelector()

    def __enter__(self) -> SelectorReactor:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def register(self, fileobj, events: int, data: ReadyCallbackT):
        return self.selector.register(fileobj, events, data)

    def modify(self, fileobj, events: int, data: ReadyCallbackT):
        return self.selector.modify(fileobj, events, data)

    def unregister(self, fileobj):
        return self.selector.unregister(fileobj)

    def poll(self, timeout: float | None = None) -> int:
        """Wait for readiness once and dispatch the ready callbacks.

        Returns:
            The number of callbacks invoked.
        """
        ready = self.selector.select(timeout)
        for key, mask in ready:
            key.data(mask)
        return len(ready)

    def run_until(
        self, predicate: Callable[[], bool], timeout: float | None = None
    ) -> bool:
        """Poll until ``predicate()`` is true, or ``timeout`` seconds elapse.

        Returns:
            The final value of ``predicate()``.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while not predicate():
            remaining = None
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
            if not self.selector.get_map():
                break
            self.poll(remaining)
        return predicate()

    def close(self):
        self.selector.close()
