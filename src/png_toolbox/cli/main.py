"""CLI entry point — click group that registers each tool's sub-command."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from png_toolbox.core.config import ConfigManager
from png_toolbox.core.events import PROGRESS, WARNING, EventBus
from png_toolbox.core.exceptions import ToolboxError


def _configure_logging(verbosity: int) -> None:
    """Route library logging to stderr: ``-v`` for INFO, ``-vv`` for DEBUG."""
    if verbosity <= 0:
        return
    level = logging.DEBUG if verbosity > 1 else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@click.group()
@click.version_option(package_name="png-toolbox")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Configuration directory (default: ~/.config/png-toolbox).",
)
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v, -vv).")
@click.pass_context
def cli(ctx: click.Context, config_dir: Path | None, verbose: int) -> None:
    """PNG Toolbox — structural PNG chunk inspection CLI."""
    _configure_logging(verbose)
    config = ConfigManager(config_dir=config_dir)
    try:
        config.load()
    except ToolboxError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.obj = config


@cli.command(name="inspect")
@click.argument("png", type=click.Path(exists=True, dir_okay=False, resolve_path=True, path_type=Path))
@click.option(
    "--fail-on-corrupt/--no-fail-on-corrupt",
    default=None,
    help="Exit with an error if any chunk has a bad CRC (default from config, else off).",
)
@click.option("--chunks", "show_chunks", is_flag=True, default=False, help="List every chunk.")
@click.pass_obj
def inspect_cmd(config: ConfigManager, png: Path, fail_on_corrupt: bool | None, show_chunks: bool) -> None:
    """Validate a PNG's chunk structure and print its header metadata.

    Pixel data is not decoded.  Chunks with a bad CRC are reported as
    warnings unless --fail-on-corrupt is given.
    """
    from png_toolbox.tools.png_inspector import PngInspectorTool
    from png_toolbox.tools.png_inspector.logic import describe_chunks, describe_structure

    if fail_on_corrupt is None:
        fail_on_corrupt = config.get("fail_on_corrupt", tool="png_inspector", default=False)

    bus = EventBus()
    bus.subscribe(WARNING, lambda **kw: click.echo(f"  warning: {kw['message']}", err=True))

    tool = PngInspectorTool(event_bus=bus)
    try:
        result = tool.run(params={"input": png, "fail_on_corrupt": fail_on_corrupt})
    except ToolboxError as exc:
        raise click.ClickException(str(exc)) from exc

    info = describe_structure(result.structure)
    click.echo(f"{png.name}: {info['width']}x{info['height']}, {info['bit_depth']}-bit {info['color_type']}")
    click.echo(f"  interlace: {info['interlace']}")
    if info["palette_entries"]:
        click.echo(f"  palette: {info['palette_entries']} entries")
    click.echo(f"  chunks: {info['chunk_count']} ({info['corrupted']} corrupted)")
    click.echo(f"  IDAT: {info['idat_chunks']} chunk(s), {info['compressed_size']} bytes")

    if show_chunks:
        for row in describe_chunks(result.structure):
            flags = ("critical" if row["critical"] else "ancillary") + (", safe-to-copy" if row["safe_to_copy"] else "")
            status = "ok" if row["crc_ok"] else "BAD CRC"
            click.echo(f"  [{row['index']:3d}] @{row['offset']:<8d} {row['type']} {row['length']:>8d}  {status:<7} {flags}")


@cli.command(name="export-idat")
@click.argument("png", type=click.Path(exists=True, dir_okay=False, resolve_path=True, path_type=Path))
@click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, resolve_path=True, path_type=Path),
    default=None,
    help="Output file (default: <name>.idat.zlib next to the input).",
)
@click.option("--suffix", default=None, help="Suffix of the default output name (default from config, else .zlib).")
@click.option("--overwrite", is_flag=True, default=False, help="Replace an existing output file.")
@click.option(
    "--fail-on-corrupt/--no-fail-on-corrupt",
    default=None,
    help="Refuse to export if any chunk has a bad CRC (default from config, else off).",
)
@click.pass_obj
def export_idat_cmd(
    config: ConfigManager,
    png: Path,
    output_path: Path | None,
    suffix: str | None,
    overwrite: bool,
    fail_on_corrupt: bool | None,
) -> None:
    """Write the concatenated IDAT payloads of a PNG as one zlib stream.

    Chunks with a bad CRC are reported as warnings unless
    --fail-on-corrupt is given.
    """
    from png_toolbox.tools.idat_exporter import IdatExporterTool
    from png_toolbox.tools.idat_exporter.logic import DEFAULT_SUFFIX

    if suffix is None:
        suffix = config.get("suffix", tool="idat_exporter", default=DEFAULT_SUFFIX)
    if fail_on_corrupt is None:
        fail_on_corrupt = config.get("fail_on_corrupt", tool="idat_exporter", default=False)

    bus = EventBus()
    bus.subscribe(PROGRESS, lambda **kw: click.echo(f"  [{kw['current']:5d}/{kw['total']:5d}] {kw['message']}"))
    bus.subscribe(WARNING, lambda **kw: click.echo(f"  warning: {kw['message']}", err=True))

    tool = IdatExporterTool(event_bus=bus)
    try:
        result = tool.run(
            params={
                "input": png,
                "output": output_path,
                "suffix": suffix,
                "overwrite": overwrite,
                "fail_on_corrupt": fail_on_corrupt,
            },
        )
    except ToolboxError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"Exported {result.size} bytes from {result.chunk_count} IDAT chunk(s) to {result.output_path}")
