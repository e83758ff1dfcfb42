import json
from pathlib import Path

from lua_modkit.models import ModInfo

_REQUIRED_FIELDS = ("id", "name", "poster", "description")


class ManifestError(ValueError):
    """Raised when mod.info is missing a required field."""


def parse_mod_info(text: str) -> ModInfo:
    values: dict[str, str] = {}
    requires: list[str] = []
    for line in text.splitlines():
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip().lower()
        value = value.strip()
        if key == "require":
            requires = [entry.strip() for entry in value.split(",") if entry.strip()]
        elif key in _REQUIRED_FIELDS:
            values[key] = value

    for name in _REQUIRED_FIELDS:
        if name not in values:
            raise ManifestError(f"mod.info has no {name}.")

    return ModInfo(require=requires, **values)


def load_mod_info(path: Path) -> ModInfo:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ManifestError(f"Manifest not found: {path}") from None
    return parse_mod_info(text)


def load_package_author(path: Path) -> str | None:
    """Return the ``author`` of a package.json, if there is one."""
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Invalid package.json: {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestError(f"Invalid package.json: {path}: expected an object")
    author = data.get("author")
    if isinstance(author, dict):
        author = author.get("name")
    return author if isinstance(author, str) and author else None
