"""The ``after`` barrier.

``{{#after}}...{{/after}}`` renders its body only once every pending
operation registered before it has settled. The set of operations is a
snapshot taken when the helper is invoked: operations registered later
(including ones issued by the body itself) belong to the next barrier.
If any operation in the snapshot failed, the barrier fails with
``BarrierError`` chained to the first failure in registration order.
"""

from __future__ import annotations

import logging
from collections.abc import Coroutine
from typing import TYPE_CHECKING, Any

from zapgen.environment.exceptions import BarrierError
from zapgen.helpers.base import asynchronous, require_block
from zapgen.pending import first_failure, wait_for_settled

if TYPE_CHECKING:
    from zapgen.context import Context
    from zapgen.template.fragment import Fragment
    from zapgen.template.renderer import HelperOptions

logger = logging.getLogger(__name__)


@asynchronous
def after(ctx: Context, options: HelperOptions) -> Coroutine[Any, Any, Fragment]:
    require_block(options)
    render_pass = ctx.global_
    snapshot = render_pass.snapshot()

    async def barrier() -> Fragment:
        if snapshot:
            logger.debug(
                "Barrier at line %d waiting on %d operation(s)", options.lineno, len(snapshot)
            )
        await wait_for_settled(snapshot, render_pass.poll_interval)

        failure = first_failure(snapshot)
        if failure is not None:
            failed = sum(1 for op in snapshot if op.failed)
            raise BarrierError(
                f"{failed} of {len(snapshot)} operation(s) before this barrier failed; "
                f"first: {failure.label}",
                failed=failed,
                expression=options.name,
                template_name=options.template_name,
                lineno=options.lineno or None,
            ) from failure.exception()
        return options.fn(ctx.child())

    return barrier()
