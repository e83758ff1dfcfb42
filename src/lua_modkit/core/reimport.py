"""Re-run bindings that read from the host API before it finished booting.

Emitted modules capture values such as ``local Foo = ____PipeWrench.Foo`` at
load time, when the host namespace is still empty. The fix repeats each of those
assignments, without ``local``, inside a block that the host runs once it is
ready. Lua closures capture the variable rather than its value, so every
function already formed over ``Foo`` sees the corrected binding.
"""

from __future__ import annotations

import logging

from lua_modkit.core.scanner import iter_local_bindings, split_trailing_statement
from lua_modkit.models import DeferredBinding

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE_PREFIX = "____PipeWrench."
IMPORTS_MARKER = "-- {IMPORTS}"


def collect_deferred_bindings(text: str, namespace_prefix: str = DEFAULT_NAMESPACE_PREFIX) -> list[DeferredBinding]:
    return list(iter_local_bindings(text, namespace_prefix))


def render_reimport_block(template: str, bindings: list[DeferredBinding]) -> str:
    reassignments = "\n".join(binding.reassignment for binding in bindings)
    return template.replace(IMPORTS_MARKER, reassignments, 1)


def apply_reimport(
    text: str,
    template: str | None,
    namespace_prefix: str = DEFAULT_NAMESPACE_PREFIX,
) -> str:
    """Splice a deferred-reimport block in front of the module's trailing return."""
    bindings = collect_deferred_bindings(text, namespace_prefix)
    if not bindings:
        return text
    if not template:
        logger.debug("Found %d deferred binding(s) but no reimport template is configured", len(bindings))
        return text

    body, return_line = split_trailing_statement(text.split("\n"))
    block = render_reimport_block(template, bindings)
    return "\n".join(body) + "\n\n" + block + "\n\n" + return_line + "\n"
