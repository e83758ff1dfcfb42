from dataclasses import dataclass
from datetime import date

from lua_modkit.core.config import BuildConfig

LUA_COMMENT = "---"
TS_COMMENT = "//"


@dataclass(frozen=True)
class BannerTokens:
    license_year: str
    license_owner: str

    @classmethod
    def from_config(cls, config: BuildConfig, today: date | None = None) -> "BannerTokens":
        today = today or date.today()
        return cls(license_year=str(today.year), license_owner=config.license_owner)

    def substitute(self, line: str) -> str:
        return line.replace("{LICENSE_YEAR}", self.license_year).replace("{LICENSE_OWNER}", self.license_owner)


def render_banner(template: str | None, tokens: BannerTokens, comment: str) -> list[str]:
    """Render a header/footer template as comment lines.

    The template's final line break does not produce an extra comment line.
    """
    if not template:
        return []
    rendered: list[str] = []
    for line in template.splitlines():
        line = tokens.substitute(line)
        rendered.append(f"{comment} {line}" if line else comment)
    return rendered


def apply_lua_banners(text: str, config: BuildConfig, tokens: BannerTokens) -> str:
    header = render_banner(config.header, tokens, LUA_COMMENT)
    footer = render_banner(config.footer, tokens, LUA_COMMENT)
    if header:
        text = "\n".join(header) + "\n\n" + text
    if footer:
        text = text + "\n" + "\n".join(footer)
    return text
