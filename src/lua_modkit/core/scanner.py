"""Lexical scanning over the subset of emitted Lua that post-processing touches.

Only three shapes matter: ``require("...")`` calls, top-level ``local``
declarations and the module's trailing ``return`` statement. Everything else in
the emitted text is opaque.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from lua_modkit.models import DeferredBinding

REQUIRE_OPEN = 'require("'
REQUIRE_CLOSE = '")'
LOCAL_KEYWORD = "local "


@dataclass(frozen=True)
class RequireCall:
    """A ``require("reference")`` span; ``end`` points past the closing paren."""

    start: int
    end: int
    reference: str


def iter_require_calls(text: str) -> Iterator[RequireCall]:
    position = 0
    while True:
        start = text.find(REQUIRE_OPEN, position)
        if start == -1:
            return
        literal_start = start + len(REQUIRE_OPEN)
        literal_end = text.find('"', literal_start)
        if literal_end == -1:
            return
        if not text.startswith(REQUIRE_CLOSE, literal_end):
            # Not a plain single-literal call; leave it alone.
            position = literal_end + 1
            continue
        end = literal_end + len(REQUIRE_CLOSE)
        yield RequireCall(start=start, end=end, reference=text[literal_start:literal_end])
        position = end


def iter_local_bindings(text: str, namespace_prefix: str) -> Iterator[DeferredBinding]:
    for line_number, line in enumerate(text.split("\n"), start=1):
        if not line.startswith(LOCAL_KEYWORD) or namespace_prefix not in line:
            continue
        declaration = line[len(LOCAL_KEYWORD) :]
        if declaration.startswith("function "):
            continue
        name, sep, initializer = declaration.partition("=")
        if not sep or not name.strip():
            continue
        yield DeferredBinding(name=name.strip(), initializer=initializer.strip(), line_number=line_number)


def split_trailing_statement(lines: Sequence[str]) -> tuple[list[str], str]:
    """Split off the last non-blank line.

    Blank lines after it are discarded. Returns ``([], "")`` when every line
    is blank.
    """
    for index in range(len(lines) - 1, -1, -1):
        if lines[index].strip():
            return list(lines[:index]), lines[index]
    return [], ""
