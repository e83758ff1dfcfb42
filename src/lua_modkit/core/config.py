import os
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from lua_modkit.core.manifest import load_package_author
from lua_modkit.core.reimport import DEFAULT_NAMESPACE_PREFIX
from lua_modkit.models import SCOPE_DIRECTORIES, ModInfo, Scope

PROJECT_ENV_VAR = "LUA_MODKIT_PROJECT"


@dataclass(frozen=True)
class ProjectLayout:
    root: Path

    @property
    def src(self) -> Path:
        return self.root / "src"

    @property
    def output(self) -> Path:
        return self.root / "media" / "lua"

    @property
    def dist(self) -> Path:
        return self.root / "dist"

    @property
    def scripts(self) -> Path:
        return self.root / "scripts"

    @property
    def typings(self) -> Path:
        return self.root / "typings"

    @property
    def manifest(self) -> Path:
        return self.root / "mod.info"

    @property
    def package_json(self) -> Path:
        return self.root / "package.json"

    @property
    def tsconfig(self) -> Path:
        return self.root / "tsconfig.json"

    @property
    def header_file(self) -> Path:
        return self.scripts / "header.txt"

    @property
    def footer_file(self) -> Path:
        return self.scripts / "footer.txt"

    @property
    def reimport_template_file(self) -> Path:
        return self.scripts / "reimport_template.lua"

    def source_dir(self, scope: Scope) -> Path:
        return self.src / scope.value

    def output_dir(self, scope: Scope) -> Path:
        return self.output / scope.value

    def declaration_file(self, mod_id: str) -> Path:
        return self.dist / f"{mod_id}.d.ts"

    def ensure_output_dirs(self) -> None:
        for scope in SCOPE_DIRECTORIES:
            self.output_dir(scope).mkdir(parents=True, exist_ok=True)
        self.dist.mkdir(parents=True, exist_ok=True)


def get_layout(root: str | Path | None = None) -> ProjectLayout:
    if root is None:
        root = os.getenv(PROJECT_ENV_VAR, ".")
    return ProjectLayout(Path(root))


class BuildConfig(BaseModel):
    """Templates that shape every build; re-read before each full build."""

    model_config = ConfigDict(frozen=True)

    header: str | None = None
    footer: str | None = None
    reimport_template: str | None = None
    deferred_namespace: str = DEFAULT_NAMESPACE_PREFIX
    license_owner: str = ""


def _read_optional(path: Path) -> str | None:
    if not path.is_file():
        return None
    return path.read_text(encoding="utf-8")


def load_build_config(layout: ProjectLayout, mod_info: ModInfo | None = None) -> BuildConfig:
    owner = load_package_author(layout.package_json) or (mod_info.poster if mod_info else "")
    return BuildConfig(
        header=_read_optional(layout.header_file),
        footer=_read_optional(layout.footer_file),
        reimport_template=_read_optional(layout.reimport_template_file),
        license_owner=owner,
    )
