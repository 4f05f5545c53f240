"""
CLI interface for file tagging.

Usage:
    tagit tag notes/heap.md "#heap, #tree"
    tagit find "#heap & (#tree | #list)"
    tagit show notes/heap.md
"""

import json
import os
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from .api import Tagger
from .errors import TagitError
from .logging_config import configure_quiet_mode, enable_debug_mode
from .types import TaggedFile, TagGroup, parse_tag_input


# Configure quiet mode by default
# Set TAGIT_VERBOSE=1 to enable debug mode via environment
if os.environ.get("TAGIT_VERBOSE") == "1":
    enable_debug_mode()
else:
    configure_quiet_mode(quiet=True)


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        print(f"tagit {version('tagit')}")
        raise typer.Exit()


def _verbose_callback(value: bool):
    if value:
        enable_debug_mode()


# Global state for CLI options
_json_output = False
_store_override: Optional[Path] = None


def _json_callback(value: bool):
    global _json_output
    _json_output = value


def _get_json_output() -> bool:
    return _json_output


def _store_callback(value: Optional[Path]):
    global _store_override
    _store_override = value


def _get_store_override() -> Optional[Path]:
    return _store_override


app = typer.Typer(
    name="tagit",
    help="Tag files and find them with boolean tag queries.",
    no_args_is_help=True,
    rich_markup_mode=None,
)


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
        callback=_verbose_callback,
        is_eager=True,
    )] = False,
    output_json: Annotated[bool, typer.Option(
        "--json", "-j",
        help="Output as JSON",
        callback=_json_callback,
        is_eager=True,
    )] = False,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    )] = None,
    store: Annotated[Optional[Path], typer.Option(
        "--store", "-s",
        envvar="TAGIT_STORE_PATH",
        help="Path to the store directory (default: ~/.tagit/)",
        callback=_store_callback,
        is_eager=True,
    )] = None,
):
    """Tag files and find them with boolean tag queries."""


# -----------------------------------------------------------------------------
# Output Formatting
# -----------------------------------------------------------------------------

def _format_files(files: list[TaggedFile], as_json: bool = False, empty: str = "No tagged files.") -> str:
    """One line per file: ``id: tag, tag``."""
    if as_json:
        return json.dumps([f.to_dict() for f in files], indent=2)
    if not files:
        return empty
    return "\n".join(str(f) for f in files)


def _format_file(f: TaggedFile, as_json: bool = False) -> str:
    """Tags of a single file, one per line."""
    if as_json:
        return json.dumps(f.to_dict(), indent=2)
    if not f.tags:
        return "No tags found."
    return "\n".join(f.tags)


def _format_groups(groups: list[TagGroup], as_json: bool = False) -> str:
    """Each tag followed by its files, indented."""
    if as_json:
        return json.dumps([g.to_dict() for g in groups], indent=2)
    if not groups:
        return "No tags found."
    lines = []
    for g in groups:
        lines.append(f"{g.tag} ({len(g.ids)})")
        lines.extend(f"  {id}" for id in g.ids)
    return "\n".join(lines)


def _get_tagger() -> Tagger:
    """Open the tag store, handling errors gracefully.

    Use as a context manager so the store is closed when the command ends.
    """
    try:
        return Tagger(_get_store_override())
    except (TagitError, OSError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _fail(e: Exception):
    typer.echo(f"Error: {e}", err=True)
    raise typer.Exit(1)


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

@app.command()
def tag(
    id: Annotated[str, typer.Argument(help="File path or URI")],
    tags: Annotated[list[str], typer.Argument(help="Tags, comma-separated or as separate arguments")],
    add: Annotated[bool, typer.Option(
        "--add", "-a",
        help="Add to the existing tags instead of replacing them"
    )] = False,
):
    """
    Set the tags of a file.

    \b
    Examples:
        tagit tag notes/heap.md "#heap, #tree"
        tagit tag notes/heap.md "#draft" --add
    """
    names = [t for text in tags for t in parse_tag_input(text)]
    with _get_tagger() as tg:
        try:
            result = tg.tag(id, names, replace=not add)
        except (TagitError, ValueError) as e:
            _fail(e)
    typer.echo(_format_files([result], as_json=_get_json_output()))


@app.command()
def untag(
    id: Annotated[str, typer.Argument(help="File path or URI")],
    remove: Annotated[Optional[list[str]], typer.Option(
        "--tag", "-t",
        help="Tag to remove (repeatable; default: all tags)"
    )] = None,
):
    """Remove some or all tags of a file."""
    with _get_tagger() as tg:
        try:
            result = tg.untag(id, remove or None)
        except (TagitError, ValueError) as e:
            _fail(e)
    typer.echo(_format_files([result], as_json=_get_json_output()))


@app.command()
def show(
    id: Annotated[str, typer.Argument(help="File path or URI")],
):
    """Show the tags of a file."""
    with _get_tagger() as tg:
        try:
            result = tg.get(id)
        except (TagitError, ValueError) as e:
            _fail(e)
    typer.echo(_format_file(result, as_json=_get_json_output()))


@app.command("list")
def list_files():
    """List all tagged files with their tags."""
    with _get_tagger() as tg:
        try:
            files = tg.list_files()
        except TagitError as e:
            _fail(e)
    typer.echo(_format_files(files, as_json=_get_json_output()))


@app.command()
def tags():
    """List every tag with the files that carry it."""
    with _get_tagger() as tg:
        try:
            groups = tg.list_tags()
        except TagitError as e:
            _fail(e)
    typer.echo(_format_groups(groups, as_json=_get_json_output()))


@app.command()
def find(
    query: Annotated[str, typer.Argument(help="Boolean tag query")],
):
    """
    Find files whose tags match a boolean query.

    & binds tighter than |; use parentheses to group.

    \b
    Examples:
        tagit find "#heap & #tree"
        tagit find "#a | (#b & #c)"
    """
    with _get_tagger() as tg:
        try:
            files = tg.find(query)
        except (TagitError, ValueError) as e:
            _fail(e)
    typer.echo(_format_files(files, as_json=_get_json_output(), empty="No matches."))


@app.command()
def mv(
    old: Annotated[str, typer.Argument(help="Previous file path or URI")],
    new: Annotated[str, typer.Argument(help="New file path or URI")],
):
    """Move tags to a file's new name after a rename."""
    with _get_tagger() as tg:
        try:
            moved = tg.renamed(old, new)
            new_id = tg.get(new).id
        except (TagitError, ValueError) as e:
            _fail(e)
    if _get_json_output():
        typer.echo(json.dumps({"moved": moved, "id": new_id}))
    elif moved:
        typer.echo(f"Moved tags to {new_id}")
    else:
        typer.echo("No tags moved.")


@app.command()
def sweep():
    """Remove tags of files that no longer exist."""
    with _get_tagger() as tg:
        try:
            removed = tg.sweep()
        except TagitError as e:
            _fail(e)
    if _get_json_output():
        typer.echo(json.dumps(removed))
        return
    typer.echo(f"Removed tags of {len(removed)} missing file(s).")
    for id in removed:
        typer.echo(f"  {id}")


# -----------------------------------------------------------------------------

def main():
    try:
        app()
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)  # Standard exit code for Ctrl+C
    except Exception as e:
        # Log full traceback to file, show clean message to user
        from .errors import log_exception
        log_path = log_exception(e, context="tagit CLI")
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
