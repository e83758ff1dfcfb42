import typer

from lua_modkit.cli.build import build, declarations, watch

app = typer.Typer(
    name="lua-modkit",
    help="lua-modkit CLI — compile TypeScript mods into client/server/shared Lua trees.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("build")(build)
app.command("watch")(watch)
app.command("declarations")(declarations)


def main() -> None:
    app()
