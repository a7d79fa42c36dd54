import threading
import typer
from pathlib import Path

from pressdock.cli.formatter import OutputFormatter
from pressdock.config.loader import load_config
from pressdock.core.context import SessionContext
from pressdock.core.status import StatusChange
from pressdock.runtime import (
    CommandRunner,
    EnvironmentProber,
    PressdockRuntimeController,
    write_descriptors,
)
from pressdock.runtime.compose import GUTENBERG_PHPUNIT_SERVICE, PHPUNIT_SERVICE
from pressdock.utils.diagnostics import ConfigLoadError, ConfigurationMissingError

DEFAULT_CONFIG = Path("pressdock.yaml")

app = typer.Typer(name="pressdock", help="Pressdock: a local WordPress development stack", rich_markup_mode=None)


def _read_option_value(tokens: list[str], index: int, option_name: str) -> tuple[str, int]:
    if index + 1 >= len(tokens):
        raise typer.BadParameter(f"Option {option_name} requires a value.")
    return tokens[index + 1], index + 2


def _split_config_option(tokens: list[str]) -> tuple[Path, list[str]]:
    """Pull --config/-c out of the arguments; everything else is passed through untouched."""
    config_path = DEFAULT_CONFIG
    rest: list[str] = []
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if token in ("--config", "-c"):
            config_value, index = _read_option_value(tokens, index, token)
            config_path = Path(config_value)
            continue
        if token.startswith("--config="):
            config_path = Path(token.split("=", 1)[1])
            index += 1
            continue
        rest.append(token)
        index += 1
    return config_path, rest


def _read_config(config_path: Path) -> dict:
    try:
        return load_config(config_path)
    except ConfigLoadError as e:
        OutputFormatter.log(str(e), severity="error")
        raise typer.Exit(code=1)


def _load_context(config_path: Path) -> SessionContext:
    context = SessionContext(config_dict=_read_config(config_path))
    OutputFormatter.configure(context.settings.log_level)
    return context


def _log_status(change: StatusChange) -> None:
    severity = "success" if change.status == "ready" else "info"
    if change.status == "missing-wordpress-folder":
        severity = "error"
    OutputFormatter.log(f"{change.axis}: {change.status}", severity=severity)


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def up(
    ctx: typer.Context,
):
    """
    Start the stack and keep it in sync with the preferences file until interrupted.
    """
    config_path, tokens = _split_config_option(list(ctx.args))
    watch = True
    for token in tokens:
        if token == "--watch":
            watch = True
        elif token == "--no-watch":
            watch = False
        else:
            raise typer.BadParameter(f"Unknown option: {token}")

    _read_config(config_path)
    controller = PressdockRuntimeController(config_path=config_path, on_status=_log_status)
    controller.shutdown_handler.register()

    OutputFormatter.log(f"Using tools directory {controller.context.tools_dir}", severity="info")
    controller.start()
    if watch:
        controller.start_preferences_watch(background=True)
        OutputFormatter.log(f"Watching {config_path} for preference changes.", severity="info")

    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        OutputFormatter.print_statuses(controller.context.status.snapshot())
        OutputFormatter.log("Interrupted. Stopping containers.", severity="info")
    finally:
        controller.stop()


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def down(
    ctx: typer.Context,
):
    """Stop and remove the stack's containers."""
    config_path, tokens = _split_config_option(list(ctx.args))
    if tokens:
        raise typer.BadParameter(f"Unexpected arguments: {' '.join(tokens)}")

    context = _load_context(config_path)
    if not context.compose_file.exists():
        OutputFormatter.log("No stack has been started from this tools directory.", severity="warning")
        return

    if not CommandRunner(context).teardown():
        OutputFormatter.log("docker-compose down failed.", severity="error")
        raise typer.Exit(code=1)
    OutputFormatter.log("Containers stopped.", severity="success")


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def wp(
    ctx: typer.Context,
):
    """Run a WP-CLI command in a throwaway container, e.g. `pressdock wp plugin list`."""
    config_path, args = _split_config_option(list(ctx.args))
    if not args:
        raise typer.BadParameter("Pass the WP-CLI command to run.")

    context = _load_context(config_path)
    result = CommandRunner(context).run_cli(*args)
    if result.stdout:
        OutputFormatter.print_data(result.stdout)
    if not result.success:
        OutputFormatter.log(f"wp {' '.join(args)} failed.", severity="error")
        raise typer.Exit(code=1)


@app.command("test", context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def run_tests(
    ctx: typer.Context,
):
    """Run PHPUnit against the WordPress checkout, or the Gutenberg checkout with --gutenberg."""
    config_path, tokens = _split_config_option(list(ctx.args))
    service = PHPUNIT_SERVICE
    args: list[str] = []
    for token in tokens:
        if token == "--gutenberg" and service == PHPUNIT_SERVICE and not args:
            service = GUTENBERG_PHPUNIT_SERVICE
            continue
        args.append(token)

    context = _load_context(config_path)
    if service == GUTENBERG_PHPUNIT_SERVICE and not context.current_config().gutenberg_folder:
        OutputFormatter.log(str(ConfigurationMissingError("basic.gutenberg-folder")), severity="error")
        raise typer.Exit(code=1)

    result = CommandRunner(context).run_service(service, *args)
    if result.stdout:
        OutputFormatter.print_data(result.stdout)
    if not result.success:
        raise typer.Exit(code=1)


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def compose(
    ctx: typer.Context,
):
    """Write the docker-compose descriptors and config fragments without starting anything."""
    config_path, tokens = _split_config_option(list(ctx.args))
    if tokens:
        raise typer.BadParameter(f"Unexpected arguments: {' '.join(tokens)}")

    context = _load_context(config_path)
    config = context.current_config()
    if not config.is_startable:
        OutputFormatter.log(str(ConfigurationMissingError("basic.wordpress-folder")), severity="error")
        raise typer.Exit(code=1)

    written = write_descriptors(context, config)
    OutputFormatter.log(
        f"Generated {written.compose_file.name} and {written.scripts_file.name} in {context.tools_dir}",
        severity="success",
    )


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def probe(
    ctx: typer.Context,
):
    """Report whether Docker has to run inside docker-machine on this host."""
    config_path, tokens = _split_config_option(list(ctx.args))
    if tokens:
        raise typer.BadParameter(f"Unexpected arguments: {' '.join(tokens)}")

    context = _load_context(config_path)
    needs_machine = EnvironmentProber(context).detect()
    OutputFormatter.print_data({"machine_fallback": needs_machine})


if __name__ == "__main__":
    app()
