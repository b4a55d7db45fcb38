"""Pending-operation registry: the async side of a render pass.

Async helpers hand an awaitable back to the renderer. The renderer
schedules it on the running event loop right away and appends the
resulting ``PendingOperation`` to the pass's registry, so the lookup makes
progress while synchronous rendering continues. Entries are never removed
individually; barriers take snapshots of the registry and the pass drains
whatever is left when it completes.

"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Generator, Iterator, Sequence
from typing import Any

from zapgen.environment.exceptions import TemplateRuntimeError

logger = logging.getLogger(__name__)

# Default barrier poll interval in seconds
DEFAULT_POLL_INTERVAL = 0.1


class PendingOperation:
    """Handle on one in-flight asynchronous operation.

    Awaiting the handle awaits the underlying future. Settled failures are
    marked as retrieved as soon as they happen, so an operation whose
    result is never used does not trigger asyncio's "exception was never
    retrieved" warning; the failure is logged instead.
    """

    __slots__ = ("_future", "label", "sequence")

    def __init__(self, future: asyncio.Future[Any], label: str, sequence: int):
        self._future = future
        self.label = label
        self.sequence = sequence
        future.add_done_callback(self._on_settled)

    @property
    def future(self) -> asyncio.Future[Any]:
        return self._future

    @property
    def settled(self) -> bool:
        """True once the operation succeeded, failed or was cancelled."""
        return self._future.done()

    @property
    def failed(self) -> bool:
        if not self._future.done():
            return False
        return self._future.cancelled() or self._future.exception() is not None

    def exception(self) -> BaseException | None:
        """The failure of a settled operation (None when it succeeded)."""
        if self._future.cancelled():
            return asyncio.CancelledError(f"{self.label} was cancelled")
        return self._future.exception()

    def result(self) -> Any:
        return self._future.result()

    def __await__(self) -> Generator[Any, None, Any]:
        return self._future.__await__()

    def _on_settled(self, future: asyncio.Future[Any]) -> None:
        if future.cancelled():
            logger.debug("Pending operation #%d (%s) cancelled", self.sequence, self.label)
            return
        error = future.exception()
        if error is not None:
            logger.warning(
                "Pending operation #%d (%s) failed: %s", self.sequence, self.label, error
            )
        else:
            logger.debug("Pending operation #%d (%s) settled", self.sequence, self.label)

    def __repr__(self) -> str:
        if not self.settled:
            state = "pending"
        elif self.failed:
            state = "failed"
        else:
            state = "done"
        return f"<PendingOperation #{self.sequence} {self.label} {state}>"


class PendingRegistry:
    """Ordered, append-only list of the operations issued in one render pass."""

    __slots__ = ("_operations",)

    def __init__(self) -> None:
        self._operations: list[PendingOperation] = []

    def register(self, awaitable: Awaitable[Any], label: str = "operation") -> PendingOperation:
        """Schedule ``awaitable`` on the running loop and append its handle.

        Raises:
            TemplateRuntimeError: No event loop is running (the template
                was rendered with ``render()`` from synchronous code but
                the helper was not declared async).
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise TemplateRuntimeError(
                f"Helper '{label}' returned an awaitable outside of async rendering",
                expression=label,
                suggestion=(
                    "Declare the helper with @asynchronous (or make it a coroutine "
                    "function) so render() runs an event loop, or call render_async()"
                ),
            ) from None

        future = asyncio.ensure_future(awaitable)
        operation = PendingOperation(future, label, len(self._operations))
        self._operations.append(operation)
        logger.debug("Registered pending operation #%d (%s)", operation.sequence, label)
        return operation

    def snapshot(self) -> tuple[PendingOperation, ...]:
        """The operations registered so far, in registration order."""
        return tuple(self._operations)

    def clear(self) -> None:
        self._operations = []

    def __len__(self) -> int:
        return len(self._operations)

    def __iter__(self) -> Iterator[PendingOperation]:
        return iter(tuple(self._operations))


async def wait_for_settled(
    operations: Sequence[PendingOperation],
    poll_interval: float = DEFAULT_POLL_INTERVAL,
) -> None:
    """Return once every operation in ``operations`` has settled.

    With a positive ``poll_interval`` the operations are polled at that
    interval; with ``0`` the snapshot is awaited directly. Neither mode
    raises for failed operations: callers inspect ``first_failure``.
    An empty sequence returns immediately.
    """
    if not operations:
        return
    if poll_interval > 0:
        while not all(op.settled for op in operations):
            await asyncio.sleep(poll_interval)
    else:
        await asyncio.wait([op.future for op in operations])


def first_failure(operations: Sequence[PendingOperation]) -> PendingOperation | None:
    """The first failed operation in registration order, if any."""
    for operation in operations:
        if operation.failed:
            return operation
    return None
