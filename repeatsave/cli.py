"""CLI for repeatsave."""

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from sqlalchemy.exc import SQLAlchemyError

from repeatsave import __version__
from repeatsave.callable import execute
from repeatsave.config import (
    GlobalConfig,
    get_config_path,
    load_global_config,
    save_global_config,
)
from repeatsave.errors import FinisherError
from repeatsave.io import read_options
from repeatsave.options import FinisherOptions, parse_option_sets
from repeatsave.storage import ConnectionPool, RecordingConnectionPool, SqlAlchemyConnectionPool

app = typer.Typer(
    name="repeatsave",
    help="Save form submissions, including repeatable containers, to a database.",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"repeatsave version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
) -> None:
    """repeatsave: save form submissions to a database."""
    pass


@app.command()
def init(
    database_url: Annotated[
        str,
        typer.Option("--database-url", help="SQLAlchemy database URL to write to"),
    ],
    finisher_identifier: Annotated[
        str,
        typer.Option("--finisher-identifier", help="Variable namespace of the finisher"),
    ] = "SaveRepeatableToDatabase",
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite an existing config",
    ),
) -> None:
    """Create the global configuration file.

    Examples:
        repeatsave init --database-url sqlite:///forms.db
    """
    config_path = get_config_path()
    if config_path.exists() and not force:
        console.print(f"[yellow]Warning:[/yellow] Config already exists at {config_path}")
        console.print("Use --force to overwrite")
        raise typer.Exit(1)

    config = GlobalConfig(database_url=database_url, finisher_identifier=finisher_identifier)
    save_global_config(config, config_path)
    console.print(f"[green]✓[/green] Created config at {config_path}")


@app.command()
def run(
    options_path: Annotated[
        Path,
        typer.Option("--options", "-c", help="Finisher options file (YAML or JSON)"),
    ],
    input_path: Annotated[
        Path,
        typer.Option("--in", "-i", help="Input JSONL file with one submission per line"),
    ],
    output_path: Annotated[
        Path | None,
        typer.Option("--out", "-o", help="Output JSONL file for results"),
    ] = None,
    database_url: Annotated[
        str | None,
        typer.Option(
            "--database-url",
            envvar="REPEATSAVE_DATABASE_URL",
            help="SQLAlchemy database URL (default: from config)",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Record operations without writing to a database"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log every skipped element and operation"),
    ] = False,
) -> None:
    """Save every submission of a JSONL file.

    Each line holds {"values": {...}, "elements": [...], "variables": {...}},
    where only "values" is required. A line without "values" is taken as
    the values themselves.
    """
    configure_logging(verbose)

    if not options_path.exists():
        console.print(f"[red]Error:[/red] Options file not found: {options_path}")
        raise typer.Exit(1)
    if not input_path.exists():
        console.print(f"[red]Error:[/red] Input file not found: {input_path}")
        raise typer.Exit(1)

    options = read_options(options_path)
    global_config = load_global_config()

    connection_pool: ConnectionPool
    if dry_run:
        connection_pool = RecordingConnectionPool()
        target = "dry run"
    else:
        database_url = database_url or global_config.database_url
        if not database_url:
            console.print("[red]Error:[/red] No database configured")
            console.print("Use --database-url or run 'repeatsave init'")
            raise typer.Exit(1)
        connection_pool = SqlAlchemyConnectionPool(
            database_url=database_url, echo=global_config.echo_sql
        )
        target = database_url

    console.print(f"[bold]repeatsave[/bold] v{__version__}")
    console.print(f"  Options: {options_path}")
    console.print(f"  Input: {input_path}")
    if output_path:
        console.print(f"  Output: {output_path}")
    console.print(f"  Database: {target}")

    processed = 0
    failed = 0
    inserts = 0
    updates = 0

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Saving submissions...", total=None)

        with open(input_path) as f_in:
            f_out = open(output_path, "w") if output_path else None
            try:
                for line_num, line in enumerate(f_in, 1):
                    line = line.strip()
                    if not line:
                        continue

                    try:
                        submission = json.loads(line)
                    except json.JSONDecodeError as e:
                        console.print(
                            f"\n[yellow]Warning:[/yellow] Invalid JSON on line {line_num}: {e}"
                        )
                        continue

                    params = submission if "values" in submission else {"values": submission}
                    params = {
                        **params,
                        "options": options,
                        "config": {
                            "dry_run": dry_run,
                            "finisher_identifier": global_config.finisher_identifier,
                        },
                    }

                    try:
                        result = execute(params, connection_pool=connection_pool)
                    except (FinisherError, SQLAlchemyError, ValueError) as e:
                        console.print(f"\n[red]Error on line {line_num}:[/red] {e}")
                        failed += 1
                        continue

                    processed += 1
                    inserts += result["stats"]["inserts"]
                    updates += result["stats"]["updates"]
                    if f_out:
                        f_out.write(json.dumps(result, ensure_ascii=False, default=str) + "\n")

                    progress.update(task, description=f"Saved {processed} submissions...")
            finally:
                if f_out:
                    f_out.close()

    console.print("\n[bold]Summary:[/bold]")
    console.print(f"  Submissions saved: {processed}")
    if failed:
        console.print(f"  [red]Failed:[/red] {failed}")
    console.print(f"  Inserts: {inserts}")
    console.print(f"  Updates: {updates}")

    if failed:
        raise typer.Exit(1)


@app.command()
def validate(
    options_path: Annotated[
        Path,
        typer.Argument(help="Finisher options file (YAML or JSON)"),
    ],
) -> None:
    """Validate a finisher options file."""
    import jsonschema

    if not options_path.exists():
        console.print(f"[red]Error:[/red] Options file not found: {options_path}")
        raise typer.Exit(1)

    schema = FinisherOptions.model_json_schema(by_alias=True)
    errors: list[str] = []
    try:
        option_sets = parse_option_sets(read_options(options_path))
    except FinisherError as e:
        console.print(f"[red]Invalid:[/red] {e}")
        raise typer.Exit(1)

    for index, option_set in enumerate(option_sets):
        try:
            jsonschema.validate(option_set, schema)
        except jsonschema.ValidationError as e:
            errors.append(f"option set {index}: {e.message}")
            continue
        if option_set.get("mode") == "update" and not option_set.get("whereClause"):
            errors.append(f'option set {index}: "whereClause" is required in update mode')

    if errors:
        for error in errors:
            console.print(f"[red]Invalid:[/red] {error}")
        raise typer.Exit(1)

    console.print(f"[green]Valid:[/green] {options_path} ({len(option_sets)} option set(s))")


if __name__ == "__main__":
    app()
