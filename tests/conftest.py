"""Shared fixtures and helpers for tests."""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from lua_modkit.core.config import ProjectLayout
from lua_modkit.core.ports.transpiler import EmitCallback

_REPO_ROOT = Path(__file__).parent.parent

MOD_INFO = "name=Sample Mod\nposter=poster.png\nid=SampleMod\ndescription=A sample mod.\nrequire=ModA, ModB\n"


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# FakeTranspiler — stands in for TypeScriptToLua / tsc in unit tests
# ---------------------------------------------------------------------------


class FakeTranspiler:
    """Replays canned emissions and records what it was asked to do."""

    def __init__(
        self,
        emissions: list[tuple[str, str, bool]] | None = None,
        declaration_output: str | None = None,
    ) -> None:
        self.emissions = emissions or []
        self.declaration_output = declaration_output
        self.transpile_calls: list[Path] = []
        self.declaration_calls: list[tuple[Path, Path]] = []
        self.placeholders_seen: list[Path] = []

    def transpile(self, config_path: Path, on_emit: EmitCallback) -> None:
        self.transpile_calls.append(config_path)
        src = config_path.parent / "src"
        self.placeholders_seen = sorted(src.rglob("_.ts")) if src.is_dir() else []
        for path, content, is_declaration in self.emissions:
            on_emit(path, content, is_declaration)

    def emit_declarations(self, config_path: Path, out_file: Path) -> None:
        self.declaration_calls.append((config_path, out_file))
        if self.declaration_output is not None:
            out_file.write_text(self.declaration_output, encoding="utf-8")


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def layout(tmp_path: Path) -> ProjectLayout:
    """Return a minimal mod project with a manifest and empty scope trees."""
    (tmp_path / "mod.info").write_text(MOD_INFO, encoding="utf-8")
    for scope in ("client", "server", "shared"):
        (tmp_path / "src" / scope).mkdir(parents=True)
    project = ProjectLayout(tmp_path)
    project.ensure_output_dirs()
    return project


@pytest.fixture
def fake_transpiler() -> FakeTranspiler:
    return FakeTranspiler()


@pytest.fixture
def transpiler_factory() -> type[FakeTranspiler]:
    return FakeTranspiler


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    """Undo CLI logging setup so caplog keeps seeing package records."""
    yield
    logger = logging.getLogger("lua_modkit")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
