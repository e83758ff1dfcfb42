import logging
from dataclasses import dataclass, field

from lua_modkit.core.scanner import iter_require_calls
from lua_modkit.models import Scope, ScopeViolation

logger = logging.getLogger(__name__)

# client and server never see each other's directories at load time.
_EXCLUSIVE_PAIRS = {(Scope.SERVER, Scope.CLIENT), (Scope.CLIENT, Scope.SERVER)}

_SCOPE_PREFIXES: tuple[tuple[str, Scope], ...] = (
    ("shared/", Scope.SHARED),
    ("client/", Scope.CLIENT),
    ("server/", Scope.SERVER),
)


@dataclass(frozen=True)
class ResolvedReference:
    path: str
    violation: ScopeViolation | None = None


@dataclass
class RewriteResult:
    text: str
    violations: list[ScopeViolation] = field(default_factory=list)


def resolve_reference(scope: Scope, reference: str) -> ResolvedReference:
    """Turn a dotted module reference into a path the host loader can find.

    Scope directories are flattened by the loader, so every leading scope
    segment is dropped. The first one names the scope the referenced module
    lives in; a client/server cross-reference still resolves, but carries a
    ``ScopeViolation``.
    """
    path = reference.replace(".", "/")
    owner: Scope | None = None
    while True:
        stripped = _strip_scope_prefix(path)
        if stripped is None:
            break
        path, referenced = stripped
        if owner is None:
            owner = referenced

    if owner is not None and (scope, owner) in _EXCLUSIVE_PAIRS:
        violation = ScopeViolation(referencing=scope, referenced=owner, reference=reference)
        return ResolvedReference(path=path, violation=violation)
    return ResolvedReference(path=path)


def _strip_scope_prefix(path: str) -> tuple[str, Scope] | None:
    for prefix, referenced in _SCOPE_PREFIXES:
        if path.startswith(prefix):
            return path[len(prefix) :], referenced
    return None


def fix_requires(scope: Scope, text: str) -> RewriteResult:
    """Rewrite every ``require("a.b")`` into ``require('a/b')``.

    The single-quoted output is never matched again, so the rewrite is
    idempotent.
    """
    if not text:
        return RewriteResult(text="")

    pieces: list[str] = []
    violations: list[ScopeViolation] = []
    cursor = 0
    for call in iter_require_calls(text):
        resolved = resolve_reference(scope, call.reference)
        if resolved.violation is not None:
            logger.warning(resolved.violation.message)
            violations.append(resolved.violation)
        pieces.append(text[cursor : call.start])
        pieces.append(f"require('{resolved.path}')")
        cursor = call.end

    if cursor == 0:
        return RewriteResult(text=text)
    pieces.append(text[cursor:])
    return RewriteResult(text="".join(pieces), violations=violations)
