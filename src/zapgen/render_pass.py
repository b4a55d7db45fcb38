"""RenderPass: the state shared by every context of one render.

A ``RenderPass`` is the ``global`` object of the context model. It is
created when a render starts, reached from any context as
``ctx.global_``, and discarded when the render ends, whether it
succeeded or failed. It owns:

- the accumulator table (named running-sum registers)
- the pending-operation registry (in-flight async lookups)
- the database handle and option lookup used by option helpers
- the memoized owning-package lookup

Nothing here is process-wide: two concurrent renders never share a pass.

"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from zapgen.accumulator import Accumulator, Number
from zapgen.environment.exceptions import (
    HelperConfigurationError,
    TemplateError,
    TemplateRuntimeError,
)
from zapgen.pending import (
    DEFAULT_POLL_INTERVAL,
    PendingOperation,
    PendingRegistry,
    first_failure,
    wait_for_settled,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from zapgen.context import Context
    from zapgen.options import OptionLookup

logger = logging.getLogger(__name__)


@dataclass
class RenderPass:
    """Per-render shared state (the ``global`` of every Context).

    Attributes:
        template_name: Name of the template being rendered
        db: Database handle handed to the option lookup
        package_id: Preset owning package; skips ``resolve_owning_package``
        option_lookup: Async option store interface (None disables option helpers)
        poll_interval: Barrier poll interval in seconds (0 awaits directly)
        accumulators: Named accumulator registers, created on first write
        pending: Operations registered by async helpers, in issue order
    """

    template_name: str | None = None
    db: Any = None
    package_id: Any = None
    option_lookup: OptionLookup | None = None
    poll_interval: float = DEFAULT_POLL_INTERVAL
    accumulators: dict[str, Accumulator] = field(default_factory=dict)
    pending: PendingRegistry = field(default_factory=PendingRegistry)
    _package_future: asyncio.Future[Any] | None = field(default=None, repr=False)

    # ─────────────────────────────────────────────────────────────────────
    # Accumulators
    # ─────────────────────────────────────────────────────────────────────

    def record(self, name: str, value: Number | None) -> Number:
        """Append ``value`` to the named register, creating it on first use.

        Returns:
            The register's new running sum.
        """
        accumulator = self.accumulators.get(name)
        if accumulator is None:
            accumulator = self.accumulators[name] = Accumulator()
        return accumulator.append(value)

    def accumulator(self, name: str) -> Accumulator | None:
        """The named register, or None if nothing was recorded under it."""
        return self.accumulators.get(name)

    # ─────────────────────────────────────────────────────────────────────
    # Pending operations
    # ─────────────────────────────────────────────────────────────────────

    def register(self, awaitable: Awaitable[Any], label: str = "operation") -> PendingOperation:
        """Schedule ``awaitable`` and append it to the pending registry."""
        return self.pending.register(awaitable, label)

    def snapshot(self) -> tuple[PendingOperation, ...]:
        """Operations registered so far; what a barrier invoked now waits on."""
        return self.pending.snapshot()

    def owning_package(self, context: Context) -> asyncio.Future[Any]:
        """Future for the package that owns the template being rendered.

        The lookup runs at most once per pass. Callers arriving while the
        first lookup is still in flight share the same future.

        Raises:
            HelperConfigurationError: No package id preset and no option lookup configured.
        """
        if self._package_future is None:
            if self.package_id is not None:
                future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
                future.set_result(self.package_id)
            else:
                if self.option_lookup is None:
                    raise HelperConfigurationError(
                        "No option lookup configured for this render",
                        suggestion="Pass option_lookup=... to Environment()",
                    )
                future = asyncio.ensure_future(self.option_lookup.resolve_owning_package(context))
                logger.debug("Resolving owning package for %s", self.template_name or "<template>")
            self._package_future = future
        return self._package_future

    async def settle(self) -> None:
        """Wait for every registered operation, including late registrations.

        Raises:
            TemplateError: The first failed operation's error, in registration order.
        """
        seen = 0
        while seen < len(self.pending):
            batch = self.pending.snapshot()[seen:]
            seen += len(batch)
            await wait_for_settled(batch, 0)

        failure = first_failure(self.pending.snapshot())
        if failure is not None:
            error = failure.exception()
            if isinstance(error, TemplateError):
                raise error
            raise TemplateRuntimeError(
                f"Async operation '{failure.label}' failed: {error}",
                expression=failure.label,
                template_name=self.template_name,
            ) from error

    # ─────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────

    def discard(self) -> None:
        """Drop all per-pass state. In-flight operations are left to finish."""
        in_flight = sum(1 for op in self.pending if not op.settled)
        if in_flight:
            logger.debug("Discarding render pass with %d operation(s) still in flight", in_flight)
        self.accumulators.clear()
        self.pending.clear()
        self._package_future = None
