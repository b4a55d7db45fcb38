"""Batch generation: render a set of templates as one all-or-nothing unit.

Each template renders in its own render pass. The result mapping is
returned only when every template rendered; the first failure is
re-raised and no partial output is handed back, so callers never write
a half-generated set of files.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from zapgen.environment.exceptions import TemplateError

if TYPE_CHECKING:
    from zapgen.environment import Environment

logger = logging.getLogger(__name__)


async def generate(env: Environment, template_names: Iterable[str], **context: Any) -> dict[str, str]:
    """Render ``template_names`` with the same data, in order.

    Args:
        env: Environment holding the loader and option lookup
        template_names: Templates to render
        **context: Template data (``_db`` / ``_package_id`` apply to every pass)

    Returns:
        Template name → rendered text, in the order given

    Raises:
        TemplateError: The first template that failed; nothing is returned
    """
    names = list(template_names)
    results: dict[str, str] = {}
    started = time.perf_counter()
    for position, name in enumerate(names, start=1):
        try:
            results[name] = await env.get_template(name).render_async(**context)
        except TemplateError:
            logger.warning(
                "Generation failed at %s (%d/%d); discarding %d rendered template(s)",
                name,
                position,
                len(names),
                len(results),
            )
            raise
        logger.debug("Generated %s (%d/%d)", name, position, len(names))
    logger.info(
        "Generated %d template(s) in %.1f ms", len(names), (time.perf_counter() - started) * 1000
    )
    return results
