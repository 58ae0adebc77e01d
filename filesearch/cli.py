"""
CLI interface for filesearch.

Usage:
    filesearch add ~/Music
    filesearch search "beethoven"
    filesearch fuzzy "beethovn" 2
    filesearch tag ~/Music/sonata.flac classical
    filesearch find --category Music --tag classical
"""

import atexit
import json
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from .api import FileSearch
from .errors import Cancelled, FileSearchError
from .logging_config import configure_quiet_mode, enable_debug_mode
from .store import normalize_path
from .types import Decision, MatchResult, MatchStrategy, PathRecord, SimilarityFinding


# Configure quiet mode by default
# Set FILESEARCH_VERBOSE=1 to enable debug mode via environment
if os.environ.get("FILESEARCH_VERBOSE") == "1":
    enable_debug_mode()
else:
    configure_quiet_mode(quiet=True)


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        print(f"filesearch {version('filesearch')}")
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
    name="filesearch",
    help="Index files and folders, tag them, and find them again despite typos.",
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
        envvar="FILESEARCH_STORE_PATH",
        help="Path to the store directory (default: ~/.filesearch/)",
        callback=_store_callback,
        is_eager=True,
    )] = None,
):
    """Index files and folders, tag them, and find them again despite typos."""


# -----------------------------------------------------------------------------
# Output Formatting
# -----------------------------------------------------------------------------

def _echo_json(data) -> None:
    typer.echo(json.dumps(data, indent=2))


def _format_path(record: PathRecord, distance: Optional[int] = None) -> str:
    if record.is_directory:
        line = f"  [DIR]  {record.path}"
    else:
        line = f"  [FILE] {record.path} ({record.size or 0} bytes)"
    if distance is not None:
        line += f" (distance: {distance})"
    return line


def _path_section_header(strategy: MatchStrategy, max_distance: Optional[int]) -> str:
    if strategy is MatchStrategy.FUZZY:
        return f"\n[Fuzzy Match - Paths (distance <= {max_distance})]"
    return f"\n[{strategy.label} Match - Paths]"


def _empty_message(strategy: MatchStrategy, max_distance: Optional[int]) -> str:
    if strategy is MatchStrategy.FUZZY:
        return f"  (no fuzzy matches within distance {max_distance})"
    return f"  (no {strategy.value} matches)"


def _path_result_dict(result: MatchResult, record: Optional[PathRecord]) -> dict:
    d = result.to_dict()
    if record is not None:
        d.update(path=record.path, is_directory=record.is_directory, size=record.size)
    return d


def _render_path_sections(
    fs: FileSearch,
    sections: dict[MatchStrategy, list[MatchResult]],
    max_distance: Optional[int],
) -> None:
    all_results = [r for results in sections.values() for r in results]
    records = fs.paths_for(all_results)

    if _get_json_output():
        _echo_json({
            strategy.value: [_path_result_dict(r, records.get(r.item.id)) for r in results]
            for strategy, results in sections.items()
        })
        return

    for strategy, results in sections.items():
        typer.echo(_path_section_header(strategy, max_distance))
        shown = 0
        for r in results:
            record = records.get(r.item.id)
            if record is not None:
                typer.echo(_format_path(record, r.distance))
                shown += 1
        if not shown:
            typer.echo(_empty_message(strategy, max_distance))
    typer.echo()


def _render_paths(records: list[PathRecord], header: str) -> None:
    if _get_json_output():
        _echo_json([r.to_dict() for r in records])
        return
    typer.echo(f"\n{header}")
    for record in records:
        typer.echo(_format_path(record))
    if not records:
        typer.echo("  (no matches)")
    typer.echo()


def _render_names(names: list[str], header: str, empty: str, total_label: Optional[str] = None) -> None:
    if _get_json_output():
        _echo_json(names)
        return
    typer.echo(f"\n{header}")
    for name in names:
        typer.echo(f"  {name}")
    if not names:
        typer.echo(f"  ({empty})")
    if total_label:
        typer.echo(f"\nTotal: {len(names)} {total_label}")
    else:
        typer.echo()


# -----------------------------------------------------------------------------
# Store access and error reporting
# -----------------------------------------------------------------------------

StoreOption = Annotated[
    Optional[Path],
    typer.Option(
        "--store", "-s",
        envvar="FILESEARCH_STORE_PATH",
        help="Path to the store directory (default: ~/.filesearch/)"
    )
]


def _get_fs(store: Optional[Path]) -> FileSearch:
    """Open the store, handling errors gracefully."""
    actual_store = store if store is not None else _get_store_override()
    try:
        fs = FileSearch(actual_store)
    except (OSError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    atexit.register(fs.close)
    return fs


@contextmanager
def _user_errors():
    """Report usage errors, missing items and cancellations as one-line messages."""
    try:
        yield
    except Cancelled:
        typer.echo("Cancelled.", err=True)
        raise typer.Exit(1)
    except FileSearchError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _interactive_decision(proposed: str):
    """Decision callback that asks on the terminal."""

    def decide(finding: SimilarityFinding) -> Decision:
        typer.echo(f"Warning: Similar tag exists: {finding.describe()}")
        if typer.confirm(f"Create new tag '{proposed}' anyway?", default=False):
            return Decision.PROCEED
        if typer.confirm(f"Use '{finding.candidate_name}' instead?", default=False):
            return Decision.REUSE
        return Decision.ABANDON

    return decide


def _fixed_decision(decision: Decision):
    def decide(finding: SimilarityFinding) -> Decision:
        typer.echo(f"Warning: Similar tag exists: {finding.describe()}", err=True)
        return decision
    return decide


# -----------------------------------------------------------------------------
# Path Commands
# -----------------------------------------------------------------------------

@app.command()
def add(
    directory: Annotated[str, typer.Argument(help="Directory to index (recursive)")],
    store: StoreOption = None,
):
    """Add a directory and everything below it to the index."""
    fs = _get_fs(store)
    with _user_errors():
        path, result = fs.add(directory)
    if _get_json_output():
        _echo_json({"path": path, "files": result.files, "directories": result.directories})
    else:
        typer.echo(f"Added {result.files} files and {result.directories} directories.")


@app.command()
def remove(
    path: Annotated[str, typer.Argument(help="Indexed path to remove")],
    store: StoreOption = None,
):
    """Remove a path from the index."""
    fs = _get_fs(store)
    with _user_errors():
        record = fs.remove(path)
    if _get_json_output():
        _echo_json({"removed": record.to_dict()})
    else:
        typer.echo(f"Removed: {record.path}")


@app.command()
def info(
    path: Annotated[str, typer.Argument(help="Indexed path")],
    store: StoreOption = None,
):
    """Show path details with tags and categories."""
    fs = _get_fs(store)
    with _user_errors():
        path_info = fs.info(path)

    if _get_json_output():
        _echo_json(path_info.to_dict())
        return

    record = path_info.record
    typer.echo("\n[Path Info]")
    typer.echo(f"  Path:        {record.path}")
    typer.echo(f"  Name:        {record.name}")
    typer.echo(f"  Type:        {'Directory' if record.is_directory else 'File'}")
    if not record.is_directory and record.size is not None:
        typer.echo(f"  Size:        {record.size} bytes")
    typer.echo(f"  Categories:  {', '.join(path_info.categories) or '(none)'}")
    typer.echo(f"  Tags:        {', '.join(path_info.tags) or '(none)'}")
    typer.echo()


# -----------------------------------------------------------------------------
# Search Commands
# -----------------------------------------------------------------------------

QueryArgument = Annotated[str, typer.Argument(help="Name or part of a name")]


@app.command()
def search(query: QueryArgument, store: StoreOption = None):
    """Search path names with every method (exact, prefix, substring, fuzzy)."""
    fs = _get_fs(store)
    with _user_errors():
        sections = fs.search(query)
    _render_path_sections(fs, sections, fs.config.search.fuzzy_default_distance)


@app.command()
def exact(query: QueryArgument, store: StoreOption = None):
    """Exact match on path names (ignoring case)."""
    fs = _get_fs(store)
    with _user_errors():
        results = fs.exact(query)
    _render_path_sections(fs, {MatchStrategy.EXACT: results}, None)


@app.command()
def prefix(query: QueryArgument, store: StoreOption = None):
    """Prefix match on path names."""
    fs = _get_fs(store)
    with _user_errors():
        results = fs.prefix(query)
    _render_path_sections(fs, {MatchStrategy.PREFIX: results}, None)


@app.command()
def substring(query: QueryArgument, store: StoreOption = None):
    """Substring match on path names."""
    fs = _get_fs(store)
    with _user_errors():
        results = fs.substring(query)
    _render_path_sections(fs, {MatchStrategy.SUBSTRING: results}, None)


@app.command()
def fuzzy(
    query: QueryArgument,
    max_distance: Annotated[Optional[int], typer.Argument(
        help="Maximum edit distance (default: fuzzy_default_distance setting)"
    )] = None,
    store: StoreOption = None,
):
    """Fuzzy match on path names, closest first."""
    fs = _get_fs(store)
    with _user_errors():
        results = fs.fuzzy(query, max_distance)
    if max_distance is None:
        max_distance = fs.config.search.fuzzy_default_distance
    _render_path_sections(fs, {MatchStrategy.FUZZY: results}, max_distance)


@app.command()
def find(
    category: Annotated[Optional[str], typer.Option(
        "--category", "-c", help="Only paths in this category"
    )] = None,
    tag: Annotated[Optional[str], typer.Option(
        "--tag", "-t", help="Only paths with this tag"
    )] = None,
    name: Annotated[Optional[str], typer.Option(
        "--name", "-n", help="Only paths whose name contains this text"
    )] = None,
    limit: Annotated[Optional[int], typer.Option(
        "--limit", "-l", help="Maximum results (default: result_cap setting)"
    )] = None,
    store: StoreOption = None,
):
    """
    Structured search: every given filter must match.

    \b
    Examples:
        filesearch find --category Games
        filesearch find -c Games -t action
        filesearch find --name report --tag work
    """
    fs = _get_fs(store)
    with _user_errors():
        records = fs.find(category=category, tag=tag, name=name, limit=limit)
    _render_paths(records, "[Search Results]")


# -----------------------------------------------------------------------------
# Tag Commands
# -----------------------------------------------------------------------------

@app.command("tag")
def tag_cmd(
    path: Annotated[str, typer.Argument(help="Indexed path")],
    name: Annotated[str, typer.Argument(help="Tag name")],
    yes: Annotated[bool, typer.Option(
        "--yes", "-y", help="Create the tag even if a similar one exists"
    )] = False,
    reuse: Annotated[bool, typer.Option(
        "--reuse", help="Use the similar existing tag instead of creating a new one"
    )] = False,
    store: StoreOption = None,
):
    """Add a tag to a path, warning about near-duplicate tags."""
    if yes and reuse:
        typer.echo("Error: Specify either --yes or --reuse, not both", err=True)
        raise typer.Exit(1)

    fs = _get_fs(store)
    if yes:
        decide = _fixed_decision(Decision.PROCEED)
    elif reuse:
        decide = _fixed_decision(Decision.REUSE)
    else:
        decide = _interactive_decision(name.strip())

    with _user_errors():
        outcome, added = fs.tag(path, name, decide)

    record_path = normalize_path(path)
    if _get_json_output():
        _echo_json({
            "path": record_path,
            "tag": outcome.tag.name,
            "created": outcome.created,
            "reused_similar": outcome.reused_similar,
            "added": added,
        })
        return
    if outcome.created:
        typer.echo(f"Created tag: {outcome.tag.name}")
    if added:
        typer.echo(f"Tagged: {record_path} [{outcome.tag.name}]")
    else:
        typer.echo(f"Path already has tag '{outcome.tag.name}'.")


@app.command()
def untag(
    path: Annotated[str, typer.Argument(help="Indexed path")],
    name: Annotated[str, typer.Argument(help="Tag name")],
    store: StoreOption = None,
):
    """Remove a tag from a path."""
    fs = _get_fs(store)
    with _user_errors():
        removed = fs.untag(path, name)
    record_path = normalize_path(path)
    if _get_json_output():
        _echo_json({"path": record_path, "tag": name, "removed": removed})
    elif removed:
        typer.echo(f"Untagged: {record_path} [{name}]")
    else:
        typer.echo(f"Path does not have tag '{name}'.")


@app.command()
def tags(
    path: Annotated[Optional[str], typer.Argument(help="Show tags on this path only")] = None,
    store: StoreOption = None,
):
    """List all tags, or the tags on one path."""
    fs = _get_fs(store)
    with _user_errors():
        names = fs.tags(path)
    if path is None:
        _render_names(names, "[All Tags]", "no tags", total_label="tags")
    else:
        _render_names(names, f"[Tags for {path}]", "no tags")


@app.command()
def tagsearch(query: QueryArgument, store: StoreOption = None):
    """Search existing tags (exact, substring, fuzzy)."""
    fs = _get_fs(store)
    with _user_errors():
        sections = fs.tagsearch(query)

    if _get_json_output():
        _echo_json({
            strategy.value: [r.to_dict() for r in results]
            for strategy, results in sections.items()
        })
        return

    max_distance = fs.config.search.fuzzy_default_distance
    for strategy, results in sections.items():
        if strategy is MatchStrategy.FUZZY:
            typer.echo(f"\n[Fuzzy Match - Tags (distance <= {max_distance})]")
        else:
            typer.echo(f"\n[{strategy.label} Match - Tags]")
        for r in results:
            suffix = f" (distance: {r.distance})" if r.distance is not None else ""
            typer.echo(f"  {r.item.name}{suffix}")
        if not results:
            typer.echo(f"  (no {strategy.value} matches)")
    typer.echo()


# -----------------------------------------------------------------------------
# Category Commands
# -----------------------------------------------------------------------------

@app.command()
def categorize(
    path: Annotated[str, typer.Argument(help="Indexed path")],
    category: Annotated[str, typer.Argument(help="Existing category")],
    store: StoreOption = None,
):
    """Put a path in a category."""
    fs = _get_fs(store)
    with _user_errors():
        cat, added = fs.categorize(path, category)
    record_path = normalize_path(path)
    if _get_json_output():
        _echo_json({"path": record_path, "category": cat.name, "added": added})
    elif added:
        typer.echo(f"Categorized: {record_path} [{cat.name}]")
    else:
        typer.echo(f"Path is already in category '{cat.name}'.")


@app.command()
def uncategorize(
    path: Annotated[str, typer.Argument(help="Indexed path")],
    category: Annotated[str, typer.Argument(help="Category name")],
    store: StoreOption = None,
):
    """Take a path out of a category."""
    fs = _get_fs(store)
    with _user_errors():
        removed = fs.uncategorize(path, category)
    record_path = normalize_path(path)
    if _get_json_output():
        _echo_json({"path": record_path, "category": category, "removed": removed})
    elif removed:
        typer.echo(f"Uncategorized: {record_path} [{category}]")
    else:
        typer.echo(f"Path is not in category '{category}'.")


@app.command()
def categories(
    path: Annotated[Optional[str], typer.Argument(help="Show categories of this path only")] = None,
    store: StoreOption = None,
):
    """List all categories, or the categories of one path."""
    fs = _get_fs(store)
    with _user_errors():
        names = fs.categories(path)
    if path is None:
        _render_names(names, "[All Categories]", "no categories")
    else:
        _render_names(names, f"[Categories for {path}]", "no categories")


@app.command("create-category")
def create_category(
    name: Annotated[str, typer.Argument(help="New category name")],
    store: StoreOption = None,
):
    """Create a new category."""
    fs = _get_fs(store)
    with _user_errors():
        cat = fs.create_category(name)
    if _get_json_output():
        _echo_json({"id": cat.id, "name": cat.name})
    else:
        typer.echo(f"Created category: {cat.name}")


# -----------------------------------------------------------------------------
# Settings Commands
# -----------------------------------------------------------------------------

@app.command("set")
def set_cmd(
    key: Annotated[str, typer.Argument(help="Setting name")],
    value: Annotated[str, typer.Argument(help="Integer value")],
    store: StoreOption = None,
):
    """Modify a setting (result_cap, fuzzy_default_distance, similarity_threshold)."""
    fs = _get_fs(store)
    with _user_errors():
        number = fs.set_setting(key, value)
    if _get_json_output():
        _echo_json({key: number})
    else:
        typer.echo(f"Set {key} = {number}")


@app.command("get")
def get_cmd(
    key: Annotated[str, typer.Argument(help="Setting name")],
    store: StoreOption = None,
):
    """View a setting."""
    fs = _get_fs(store)
    with _user_errors():
        number = fs.get_setting(key)
    if _get_json_output():
        _echo_json({key: number})
    else:
        typer.echo(f"{key} = {number}")


@app.command()
def settings(store: StoreOption = None):
    """List all settings."""
    fs = _get_fs(store)
    values = fs.settings()
    if _get_json_output():
        _echo_json(values)
        return
    typer.echo("\n[Settings]")
    for key, value in values.items():
        typer.echo(f"  {key} = {value}")
    typer.echo()


# -----------------------------------------------------------------------------
# Utility Commands
# -----------------------------------------------------------------------------

@app.command()
def stats(store: StoreOption = None):
    """Show index statistics."""
    fs = _get_fs(store)
    s = fs.stats()
    if _get_json_output():
        _echo_json(s.to_dict())
        return
    typer.echo("\n[Database Statistics]")
    typer.echo(f"  Total paths:  {s.paths}")
    typer.echo(f"  Directories:  {s.directories}")
    typer.echo(f"  Files:        {s.files}")
    typer.echo(f"  Tags:         {s.tags}")
    typer.echo(f"  Categories:   {s.categories} ({s.categories_in_use} in use)")
    typer.echo()


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
        log_path = log_exception(e, context="filesearch CLI")
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
