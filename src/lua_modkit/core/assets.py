import logging
import shutil
from pathlib import Path

from lua_modkit.core.banner import BannerTokens, apply_lua_banners
from lua_modkit.core.config import BuildConfig, ProjectLayout
from lua_modkit.models import Scope

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".ts"
DECLARATION_SUFFIX = ".d.ts"
LUA_SUFFIX = ".lua"

# Host-provided files that must stay byte-identical to what the host ships.
BANNER_EXEMPT = ("shared/zomboid.lua", "shared/events.lua")

# Host binding libraries copied from typings/<name>/<version>/<name>.lua.
SHARED_LIBRARIES = ("PipeWrench", "PipeWrench-Events", "PipeWrench-Utils")
RUNTIME_LIBRARY = "lualib_bundle.lua"


def takes_banner(destination: Path) -> bool:
    posix = destination.as_posix().lower()
    return posix.endswith(LUA_SUFFIX) and not posix.endswith(BANNER_EXEMPT)


def copy_file(source: Path, destination: Path, config: BuildConfig) -> None:
    """Mirror one file, adding banners when the destination is a Lua module."""
    logger.info('Copying "%s" to "%s"..', source, destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    if takes_banner(destination):
        text = source.read_text(encoding="utf-8")
        destination.write_text(apply_lua_banners(text, config, BannerTokens.from_config(config)), encoding="utf-8")
    else:
        shutil.copyfile(source, destination)


def mirror_assets(source_dir: Path, destination_dir: Path, config: BuildConfig) -> list[Path]:
    """Copy every non-TypeScript file under ``source_dir``, keeping relative paths."""
    copied: list[Path] = []
    if not source_dir.is_dir():
        return copied
    for entry in sorted(source_dir.iterdir()):
        if entry.name.lower().endswith(SOURCE_SUFFIX):
            continue
        target = destination_dir / entry.name
        if entry.is_dir():
            copied.extend(mirror_assets(entry, target, config))
        else:
            copy_file(entry, target, config)
            copied.append(target)
    return copied


def _latest_library_file(typings: Path, name: str) -> Path | None:
    library_dir = typings / name
    if not library_dir.is_dir():
        return None
    candidates = sorted(library_dir.glob(f"*/{name}{LUA_SUFFIX}"), key=lambda p: _version_key(p.parent.name))
    return candidates[-1] if candidates else None


def _version_key(version: str) -> tuple[tuple[int, int, str], ...]:
    return tuple((1, int(part), "") if part.isdigit() else (0, 0, part) for part in version.split("."))


def copy_shared_libraries(layout: ProjectLayout, config: BuildConfig) -> list[Path]:
    shared = layout.output_dir(Scope.SHARED)
    copied: list[Path] = []
    for name in SHARED_LIBRARIES:
        source = _latest_library_file(layout.typings, name)
        if source is None:
            logger.debug("No typings found for %s", name)
            continue
        target = shared / f"{name}{LUA_SUFFIX}"
        copy_file(source, target, config)
        copied.append(target)

    runtime = layout.scripts / RUNTIME_LIBRARY
    if runtime.is_file():
        target = shared / RUNTIME_LIBRARY
        copy_file(runtime, target, config)
        copied.append(target)
    return copied
