"""Tests for header/footer banner rendering."""

from __future__ import annotations

from datetime import date

from lua_modkit.core.banner import LUA_COMMENT, TS_COMMENT, BannerTokens, apply_lua_banners, render_banner
from lua_modkit.core.config import BuildConfig

TOKENS = BannerTokens(license_year="2026", license_owner="Jab")


def test_render_substitutes_tokens_and_comments_lines() -> None:
    template = "MIT License\n\nCopyright (c) {LICENSE_YEAR} {LICENSE_OWNER}\n"
    assert render_banner(template, TOKENS, LUA_COMMENT) == [
        "--- MIT License",
        "---",
        "--- Copyright (c) 2026 Jab",
    ]


def test_render_handles_windows_line_endings() -> None:
    assert render_banner("a\r\nb\r\n", TOKENS, TS_COMMENT) == ["// a", "// b"]


def test_render_without_template() -> None:
    assert render_banner(None, TOKENS, LUA_COMMENT) == []
    assert render_banner("", TOKENS, LUA_COMMENT) == []


def test_tokens_from_config_use_current_year() -> None:
    tokens = BannerTokens.from_config(BuildConfig(license_owner="Someone"), today=date(2024, 5, 1))
    assert tokens == BannerTokens(license_year="2024", license_owner="Someone")


def test_apply_lua_banners() -> None:
    config = BuildConfig(header="Header {LICENSE_OWNER}\n", footer="Footer\n")
    assert apply_lua_banners("return 1\n", config, TOKENS) == "--- Header Jab\n\nreturn 1\n\n--- Footer"


def test_apply_lua_banners_without_templates_is_identity() -> None:
    assert apply_lua_banners("return 1\n", BuildConfig(), TOKENS) == "return 1\n"
