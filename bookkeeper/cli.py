"""CLI entrypoint for bookkeeper."""

import logging
import sys
from datetime import datetime
from pathlib import Path

import click

from . import __version__
from .config import load_config, locate_config


def _parse_meta(values: tuple[str, ...]) -> dict[str, str]:
    meta: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"Expected KEY=VALUE, got {item!r}", param_hint="--meta")
        meta[key.strip()] = value
    return meta


def _parse_moment(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise click.BadParameter(f"Not an ISO-8601 timestamp: {value!r}", param_hint="--at") from exc


@click.group()
@click.version_option(__version__, prog_name="bookkeeper")
@click.option(
    "--dir",
    "-d",
    "audit_dir",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Audit directory (defaults to config `dir`, then the current directory)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to bookkeeper.toml (defaults to the nearest one above the current directory)",
)
@click.option("--verbose", is_flag=True, help="Log merge and replay details")
@click.pass_context
def cli(ctx: click.Context, audit_dir: Path | None, config_path: Path | None, verbose: bool) -> None:
    """bookkeeper - append-only, mergeable change history for JSON documents.

    Record edits of a document as audit entries, union sibling histories,
    and replay the log to get the document at any point in time.
    """
    if verbose:
        from rich.logging import RichHandler

        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(show_path=False)],
        )

    try:
        config = load_config(config_path or locate_config(audit_dir, Path.cwd()))
    except ValueError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}") from exc

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["dir"] = (audit_dir or config.dir or Path.cwd()).resolve()


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--overwrite", is_flag=True, help="Replace an existing original snapshot")
@click.pass_context
def init(ctx: click.Context, source: Path, overwrite: bool) -> None:
    """Start a history with SOURCE (JSON or YAML) as the original snapshot."""
    from .commands.audit_cmd import run_init

    sys.exit(run_init(ctx.obj["dir"], source, overwrite=overwrite))


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--author", type=str, default=None, help="Author recorded in entry metadata")
@click.option("--meta", "meta_items", multiple=True, metavar="KEY=VALUE", help="Extra entry metadata")
@click.pass_context
def record(ctx: click.Context, source: Path, author: str | None, meta_items: tuple[str, ...]) -> None:
    """Record SOURCE as an edit of the original snapshot.

    The new version is diffed against the original and appended to the log
    as one entry.

    Examples:

        bookkeeper record doc.json --author alice

        bookkeeper -d audit record doc.yaml --meta ticket=ABC-12
    """
    from .commands.audit_cmd import run_record

    meta = _parse_meta(meta_items)
    sys.exit(run_record(ctx.obj["dir"], source, author=author or ctx.obj["config"].author, meta=meta))


@cli.command()
@click.option("--limit", type=click.IntRange(min=1), default=20, show_default=True, help="Max entries to show")
@click.option("--path", "path_filter", type=str, default=None, help="Only entries touching this JSON Pointer")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def show(ctx: click.Context, limit: int, path_filter: str | None, output_json: bool) -> None:
    """Show the most recent audit entries."""
    from .commands.audit_cmd import run_show

    sys.exit(run_show(ctx.obj["dir"], limit=limit, path=path_filter, output_json=output_json))


@cli.command()
@click.option("--at", "at", type=str, default=None, help="Replay only entries up to this ISO-8601 instant")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write output to a file (default: stdout)",
)
@click.pass_context
def replay(ctx: click.Context, at: str | None, output: Path | None) -> None:
    """Print the document obtained by replaying the log."""
    from .commands.audit_cmd import run_replay

    moment = _parse_moment(at)
    sys.exit(run_replay(ctx.obj["dir"], at=moment, output=output, indent=ctx.obj["config"].indent))


@cli.command()
@click.argument(
    "sources",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
)
@click.pass_context
def union(ctx: click.Context, sources: tuple[Path, ...]) -> None:
    """Union the histories of sibling audit directories into this one.

    Entries are deduplicated by id; entries already present are not
    written again.
    """
    from .commands.audit_cmd import run_union

    sys.exit(run_union(ctx.obj["dir"], list(sources)))


@cli.command()
@click.pass_context
def summary(ctx: click.Context) -> None:
    """Show a summary of the recorded history."""
    from .commands.audit_cmd import run_summary

    sys.exit(run_summary(ctx.obj["dir"]))


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
