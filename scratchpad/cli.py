"""CLI entrypoint for scratchpad."""

import os
import sys
from pathlib import Path

import click
from rich.console import Console

from . import __version__
from .errors import ScratchpadError


def _fail(error: ScratchpadError) -> None:
    from .commands import print_error

    print_error(Console(stderr=True), error)
    sys.exit(1)


class ScratchpadGroup(click.Group):
    """Reports any ScratchpadError escaping a command as one line and exit status 1."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except ScratchpadError as e:
            _fail(e)


def _open(ctx: click.Context):
    """Load configuration and the index on first use; returns ``(index, coordinator)``."""
    obj = ctx.ensure_object(dict)
    if "index" in obj:
        return obj["index"], obj["index"].refresher

    from .config import (
        Configuration,
        find_configuration,
        index_settings,
        load_configuration,
        resolve_libraries,
        resolve_working_directory,
    )
    from .index import open_index

    if obj["configuration"] is not None:
        config = load_configuration(obj["configuration"])
    elif obj["library_paths"]:
        config = Configuration()
    else:
        found = find_configuration(Path.cwd())
        config = load_configuration(*found) if found else Configuration()

    working_directory = resolve_working_directory(config)
    if working_directory is not None:
        os.chdir(working_directory)

    libraries = resolve_libraries(obj["library_paths"], config.libraries)
    index = open_index(libraries, index_settings(config, obj["flags"]))

    obj["index"] = index
    return index, index.refresher


@click.group(cls=ScratchpadGroup)
@click.version_option(__version__, prog_name="scratchpad")
@click.option(
    "--configuration",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (defaults to the first one found in the search path)",
)
@click.option(
    "--chdir",
    "-C",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Change to this directory before anything else",
)
@click.option(
    "--library-path",
    "library_paths",
    multiple=True,
    help="Use a default library rooted here instead of configured ones. Repeatable.",
)
@click.option("--index-disable-walk", is_flag=True, help="Never walk libraries; require a snapshot")
@click.option("--index-disable-database", is_flag=True, help="Do not use a snapshot at all")
@click.option("--index-disable-load", is_flag=True, help="Do not load the snapshot")
@click.option("--index-disable-store", is_flag=True, help="Do not write the snapshot")
@click.option("--index-disable-dirty", is_flag=True, help="Ignore and never touch the dirty marker")
@click.option("--index-disable-refresh", is_flag=True, help="Do not refresh lazily while running")
@click.option("--verbose", is_flag=True, help="Log debugging details to stderr")
@click.pass_context
def cli(
    ctx: click.Context,
    configuration: Path | None,
    chdir: Path | None,
    library_paths: tuple[str, ...],
    index_disable_walk: bool,
    index_disable_database: bool,
    index_disable_load: bool,
    index_disable_store: bool,
    index_disable_dirty: bool,
    index_disable_refresh: bool,
    verbose: bool,
) -> None:
    """scratchpad - Index and query plain-text notes.

    Libraries are directories of notes; the index of their documents is
    cached in a snapshot and refreshed lazily when files change.
    """
    from .config import IndexFlags
    from .logging_config import configure_logging

    configure_logging(verbose)

    ctx.ensure_object(dict)
    if configuration is not None:
        configuration = configuration.resolve()
    if chdir is not None:
        os.chdir(chdir)

    ctx.obj["configuration"] = configuration
    ctx.obj["library_paths"] = [os.path.abspath(p) for p in library_paths]
    ctx.obj["flags"] = IndexFlags(
        walk_disabled=index_disable_walk,
        database_disabled=index_disable_database,
        load_disabled=index_disable_load,
        store_disabled=index_disable_store,
        dirty_disabled=index_disable_dirty,
        refresh_disabled=index_disable_refresh,
    )


@cli.command("list")
@click.option("--library", "-l", default=None, help="Library identifier to restrict to")
@click.option(
    "--type",
    "-t",
    "list_type",
    type=click.Choice(["library", "document"]),
    default="document",
    show_default=True,
)
@click.option(
    "--what",
    "-w",
    type=click.Choice(["identifier", "title", "name", "path", "commonmark-link", "body"]),
    default="identifier",
    show_default=True,
    help="What to print for each entry",
)
@click.option(
    "--label",
    type=click.Choice(["identifier", "title", "name", "path", "commonmark-link"]),
    default="title",
    show_default=True,
    help="Label paired with each value (json output)",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["text", "text-sp", "text-0", "json"]),
    default="text",
    show_default=True,
)
@click.pass_context
def list_command(
    ctx: click.Context,
    library: str | None,
    list_type: str,
    what: str,
    label: str,
    output_format: str,
) -> None:
    """List libraries or documents.

    Examples:

        scratchpad list

        scratchpad list -t library -w path

        scratchpad list -l notes -w title -f json
    """
    from .commands.list_cmd import run_list

    index, _ = _open(ctx)
    exit_code = run_list(
        index,
        library=library,
        list_type=list_type,
        what=what,
        label=label,
        output_format=output_format,
    )
    sys.exit(exit_code)


@cli.command()
@click.option("--term", "terms", multiple=True, required=True, help="Text that must occur. Repeatable.")
@click.option("--library", "-l", default=None, help="Library identifier to restrict to")
@click.option(
    "--where",
    type=click.Choice(["identifier", "title", "name", "path", "body"]),
    default="title",
    show_default=True,
    help="Text searched for the terms",
)
@click.option(
    "--what",
    "-w",
    type=click.Choice(["identifier", "title", "name", "path", "commonmark-link"]),
    default="identifier",
    show_default=True,
    help="What to print for each match",
)
@click.option("--match-any", is_flag=True, help="Select documents matching any term instead of all")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["text", "text-sp", "text-0", "json"]),
    default="text",
    show_default=True,
)
@click.pass_context
def grep(
    ctx: click.Context,
    terms: tuple[str, ...],
    library: str | None,
    where: str,
    what: str,
    match_any: bool,
    output_format: str,
) -> None:
    """Select documents whose title (or other text) contains the terms.

    Examples:

        scratchpad grep --term garden

        scratchpad grep --term todo --term urgent --where body -w title
    """
    from .commands.list_cmd import run_grep

    index, _ = _open(ctx)
    exit_code = run_grep(
        index,
        list(terms),
        library=library,
        where=where,
        what=what,
        match_any=match_any,
        output_format=output_format,
    )
    sys.exit(exit_code)


@cli.command()
@click.option("--library", "-l", default=None, help="Library identifier (makes --document a token)")
@click.option("--document", "-d", required=True, help="Document identifier (library:token)")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["identifier", "title", "name", "path", "source", "json"]),
    default="source",
    show_default=True,
)
@click.pass_context
def export(ctx: click.Context, library: str | None, document: str, output_format: str) -> None:
    """Print a document.

    Examples:

        scratchpad export -d notes:ideas

        scratchpad export -l notes -d ideas -f json
    """
    from .commands.export import run_export
    from .workflow import merge_identifiers

    index, _ = _open(ctx)
    _, identifier = merge_identifiers(library, document)
    sys.exit(run_export(index, identifier, output_format))


@cli.command()
@click.option("--library", "-l", required=True, help="Library to create the document in")
@click.option("--document", "-d", "token", required=True, help="Token of the new document")
@click.option("--title", default=None, help="Title written as the first heading")
@click.pass_context
def create(ctx: click.Context, library: str, token: str, title: str | None) -> None:
    """Create a new document.

    Example:

        scratchpad create -l notes -d ideas/garden --title "Garden ideas"
    """
    from .commands.edit_cmd import run_create

    index, _ = _open(ctx)
    sys.exit(run_create(index, library, token, title))


@cli.command()
@click.option("--library", "-l", default=None, help="Library identifier (makes --document a token)")
@click.option("--document", "-d", required=True, help="Document identifier (library:token)")
@click.pass_context
def edit(ctx: click.Context, library: str | None, document: str) -> None:
    """Open a document in $EDITOR and re-index it afterwards."""
    from .commands.edit_cmd import run_edit
    from .workflow import merge_identifiers

    index, _ = _open(ctx)
    _, identifier = merge_identifiers(library, document)
    sys.exit(run_edit(index, identifier, lambda path: click.edit(filename=str(path))))


@cli.command()
@click.pass_context
def dump(ctx: click.Context) -> None:
    """Print the whole index as JSON."""
    from .commands.export import run_dump

    index, _ = _open(ctx)
    sys.exit(run_dump(index))


# -----------------------------------------------------------------------------
# Index commands - snapshot maintenance
# -----------------------------------------------------------------------------


@cli.group("index")
def index_group() -> None:
    """Inspect and maintain the index snapshot."""
    pass


@index_group.command("status")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def index_status(ctx: click.Context, output_json: bool) -> None:
    """Show libraries, document counts and snapshot timestamps."""
    from .commands.index_cmd import run_status

    index, coordinator = _open(ctx)
    sys.exit(run_status(index, coordinator, output_json=output_json))


@index_group.command("refresh")
@click.pass_context
def index_refresh(ctx: click.Context) -> None:
    """Walk all libraries now and rewrite the snapshot."""
    from .commands.index_cmd import run_refresh

    index, coordinator = _open(ctx)
    sys.exit(run_refresh(index, coordinator))


@index_group.command("mark-dirty")
@click.pass_context
def index_mark_dirty(ctx: click.Context) -> None:
    """Touch the dirty marker so other processes re-walk."""
    from .commands.index_cmd import run_mark_dirty

    _, coordinator = _open(ctx)
    sys.exit(run_mark_dirty(coordinator))


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
