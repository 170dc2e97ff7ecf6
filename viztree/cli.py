from __future__ import annotations

import io
import sys
from pathlib import Path
from typing import Any, BinaryIO

import click
from click.core import ParameterSource
from pydantic import ValidationError

from viztree import __version__
from viztree.models import ViewerSettings, format_validation_error, load_settings
from viztree.page import PageTemplate, TemplateError
from viztree.viewer import Viewer

_OVERRIDABLE = ("addr", "pipe", "title", "script", "open_browser")
_EXPLICIT_SOURCES = (ParameterSource.COMMANDLINE, ParameterSource.ENVIRONMENT)


def _resolve_settings(ctx: click.Context, config: Path | None, **options: Any) -> ViewerSettings:
    try:
        base = load_settings(config) if config is not None else ViewerSettings()
        overrides = {
            name: options[name]
            for name in _OVERRIDABLE
            if config is None or ctx.get_parameter_source(name) in _EXPLICIT_SOURCES
        }
        return ViewerSettings.model_validate({**base.model_dump(), **overrides})
    except ValidationError as exc:
        raise click.ClickException(f"Invalid settings:\n{format_validation_error(exc)}") from exc
    except (OSError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc


def _text_stream(binary: BinaryIO, **kwargs: Any) -> io.TextIOWrapper:
    # surrogateescape keeps undecodable bytes so relay output matches input byte for byte.
    return io.TextIOWrapper(
        binary,
        encoding="utf-8",
        errors="surrogateescape",
        newline="",
        **kwargs,
    )


def _input_stream() -> io.TextIOWrapper:
    binary = sys.stdin.buffer
    try:
        fd = binary.fileno()
    except (AttributeError, io.UnsupportedOperation, ValueError):
        return _text_stream(binary)
    # Unbuffered, so a read still blocked at exit holds no buffer lock.
    return _text_stream(open(fd, "rb", buffering=0, closefd=False))


@click.command(
    help=(
        "Read graph-description text (e.g. Graphviz dot) from stdin and serve it as a "
        "rendered page once input ends."
    )
)
@click.option(
    "addr",
    "--addr",
    type=str,
    default="localhost:8080",
    show_default=True,
    envvar="VIZTREE_ADDR",
    help="Listen address host:port.",
)
@click.option(
    "pipe",
    "-p",
    "--pipe",
    is_flag=True,
    default=False,
    help="Also copy stdin to stdout as it is read.",
)
@click.option(
    "config",
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML settings file; command-line flags take precedence.",
)
@click.option(
    "script",
    "--script",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Inline this script instead of the bundled viz.js; it must define renderGraph.",
)
@click.option("title", "--title", type=str, default="Viztree", show_default=True)
@click.option(
    "open_browser",
    "--open",
    is_flag=True,
    default=False,
    help="Open the page in a browser once it is being served.",
)
@click.version_option(__version__, prog_name="viztree")
@click.pass_context
def app(ctx: click.Context, config: Path | None, **options: Any) -> None:
    settings = _resolve_settings(ctx, config, **options)
    try:
        template = PageTemplate.load(script_path=settings.script, title=settings.title)
    except (TemplateError, FileNotFoundError) as exc:
        raise click.ClickException(str(exc)) from exc

    sink = _text_stream(sys.stdout.buffer, write_through=True) if settings.pipe else None
    viewer = Viewer(
        settings=settings,
        template=template,
        source=_input_stream(),
        sink=sink,
    )
    restore_signals = viewer.coordinator.install_signal_handlers()
    try:
        reason = viewer.run()
    finally:
        restore_signals()
        if sink is not None:
            # Leave the process stdout open for later output.
            sink.detach()

    if reason.error is not None:
        click.echo(f"viztree: {reason.describe()}", err=True)
    ctx.exit(reason.exit_code)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
