"""CLI entry point for castmatch.

Provides commands:
  - load: Upsert movie records from a JSON file into the SQLite store
  - resolve: Resolve a profile slug to a canonical person name
  - profile: Show a person's filmography grouped by role
  - audit duplicates: Report credit spellings that look like one person
  - aliases: Register aliases and movie exclusions for reconciled persons
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from castmatch.config import MatchConfig, load_config
from castmatch.database import Database
from castmatch.models import AliasRecord, CreditField, MovieRecord
from castmatch.registry import PersonRegistry

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="castmatch - resolve people in movie credits and build their filmographies",
    rich_markup_mode="rich",
)
console = Console()

audit_app = typer.Typer(help="Catalogue-wide data quality audits")
app.add_typer(audit_app, name="audit")

aliases_app = typer.Typer(help="Manage slug aliases for reconciled persons")
app.add_typer(aliases_app, name="aliases")

_ROLE_LABELS = {
    CreditField.HERO: "Actor",
    CreditField.HEROINE: "Actress",
    CreditField.DIRECTOR: "Director",
    CreditField.PRODUCER: "Producer",
    CreditField.MUSIC_DIRECTOR: "Music Director",
    CreditField.WRITER: "Writer",
}


@dataclass
class CliState:
    """Shared state across CLI commands. Initialized in app callback."""

    config: MatchConfig


@app.callback()
def app_callback(
    ctx: typer.Context,
    db_path: Annotated[
        Path | None,
        typer.Option("--db", "-d", help="Path to SQLite database"),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to castmatch config JSON"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show resolution and matching decisions"),
    ] = False,
) -> None:
    """Load configuration and set up logging."""
    if verbose:
        handler = RichHandler(console=console, show_path=False)
        package_logger = logging.getLogger("castmatch")
        package_logger.addHandler(handler)
        package_logger.setLevel(logging.DEBUG)

    config: MatchConfig
    if config_path is not None:
        try:
            config = load_config(config_path)
        except (OSError, ValueError) as e:
            console.print(f"[red]Error:[/red] Failed to load config {config_path}: {escape(str(e))}")
            raise typer.Exit(code=1)
    else:
        config = MatchConfig()

    # CLI db path overrides config
    if db_path is not None:
        config.db_path = db_path

    ctx.obj = CliState(config=config)


def get_config(ctx: typer.Context) -> MatchConfig:
    """Type-safe accessor for the MatchConfig from Typer context."""
    if ctx.obj is None:
        return MatchConfig()
    return ctx.obj.config


def _open_existing(config: MatchConfig) -> Database:
    if not config.db_path.exists():
        console.print(f"[red]Error:[/red] Database not found: {config.db_path}")
        console.print("[dim]Run 'castmatch load FILE.json' first.[/dim]")
        raise typer.Exit(code=1)
    return Database(config.db_path)


@app.command()
def load(
    ctx: typer.Context,
    source: Annotated[
        Path,
        typer.Argument(help="JSON file holding an array of movie records"),
    ],
) -> None:
    """Upsert movie records from a JSON file into the store."""
    config = get_config(ctx)

    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Error:[/red] Cannot read {source}: {escape(str(e))}")
        raise typer.Exit(code=1)

    if not isinstance(data, list):
        console.print(f"[red]Error:[/red] {source} must contain a JSON array of movies")
        raise typer.Exit(code=1)

    try:
        records = [MovieRecord.model_validate(item) for item in data]
    except ValidationError as e:
        console.print(f"[red]Error:[/red] Invalid movie record in {source}:\n{escape(str(e))}")
        raise typer.Exit(code=1)

    with Database(config.db_path) as db:
        written = db.upsert_movies(records)
        total = db.count_movies()

    console.print(
        Panel(
            f"Loaded: [green]{written}[/green] records from {source}\n"
            f"Catalogue size: [bold]{total}[/bold]",
            title="Movie Load",
            border_style="cyan",
        )
    )


def _resolve(db: Database, config: MatchConfig, slug: str, registry: PersonRegistry) -> str | None:
    from castmatch.resolver import SlugResolver

    resolver = SlugResolver(
        db,
        registry,
        field_order=config.field_order,
        sample_limit=config.sample_limit,
    )
    return resolver.resolve(slug)


@app.command()
def resolve(
    ctx: typer.Context,
    slug: Annotated[str, typer.Argument(help="Profile slug, e.g. 'teja'")],
    save: Annotated[
        bool,
        typer.Option("--save", help="Store the result as an alias for future lookups"),
    ] = False,
) -> None:
    """Resolve a profile slug to the canonical person name."""
    config = get_config(ctx)

    with _open_existing(config) as db:
        registry = PersonRegistry(db)
        name = _resolve(db, config, slug, registry)
        if name is None:
            console.print(f"[red]Person not found:[/red] {slug}")
            raise typer.Exit(code=1)

        console.print(escape(name))
        if save:
            from castmatch.registry import reconcile

            person = reconcile(db, slug, name, registry=registry)
            console.print(f"[dim]Saved alias '{slug}' -> {person.person_id}[/dim]")


@app.command()
def profile(
    ctx: typer.Context,
    slug: Annotated[str, typer.Argument(help="Profile slug, e.g. 'nagarjuna'")],
    exclude: Annotated[
        list[str] | None,
        typer.Option("--exclude", "-x", help="Movie slug known to be misattributed (repeatable)"),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the profile as JSON"),
    ] = False,
) -> None:
    """Show a person's filmography grouped by role."""
    from castmatch.aggregator import build_profile
    from castmatch.names import search_term, slugify

    config = get_config(ctx)

    with _open_existing(config) as db:
        registry = PersonRegistry(db)
        name = _resolve(db, config, slug, registry)
        if name is None:
            console.print(f"[red]Person not found:[/red] {slug}")
            raise typer.Exit(code=1)

        term = search_term(name)
        records = db.movies_mentioning(term)
        logger.debug("Refetched %d records for search term %r", len(records), term)

    # Stored exclusions for this person plus any given on the command line
    excluded = set(exclude or ())
    person = registry.get_person(slugify(name))
    if person is not None:
        excluded.update(person.exclude_movies)

    result = build_profile(
        records,
        name,
        exclude_slugs=excluded,
        min_single_word_length=config.min_single_word_length,
        collaborator_limit=config.collaborator_limit,
    )

    if as_json:
        console.print_json(json.dumps(result.to_dict()))
        return

    span = (
        f"{result.first_year}-{result.last_year}"
        if result.first_year is not None
        else "unknown"
    )
    console.print(
        Panel(
            f"Movies: [bold]{result.total_movies}[/bold]\nCareer: {span}",
            title=name,
            border_style="cyan",
        )
    )

    for credit, stats in result.role_stats.items():
        if not stats.count:
            continue
        table = Table(title=f"{_ROLE_LABELS[credit]} ({stats.count})")
        table.add_column("Year", justify="right", style="dim")
        table.add_column("Title", style="bold")
        table.add_column("Rating", justify="right")
        table.add_column("Also", style="dim")
        for movie in stats.movies:
            others = [r for r in result.roles_by_movie.get(movie.id, []) if r != credit]
            table.add_row(
                str(movie.release_year or ""),
                movie.title,
                f"{movie.rating:.1f}" if movie.rating else "",
                ", ".join(_ROLE_LABELS[r] for r in others),
            )
        console.print(table)

    if result.milestones:
        console.print("\n[bold]Milestones:[/bold]")
        for milestone in result.milestones:
            label = "Top rated" if milestone.category == "top_rated" else "Blockbuster"
            console.print(f"  {label}: {escape(milestone.title)} ({milestone.year or '?'})")

    top = result.collaborators.get("music_director") or []
    if top:
        console.print("\n[bold]Frequent music directors:[/bold]")
        for person in top[:5]:
            console.print(f"  {person.name}: {person.count} movie(s)")


@audit_app.command("duplicates")
def audit_duplicates(
    ctx: typer.Context,
    threshold: Annotated[
        int | None,
        typer.Option("--threshold", "-t", help="Minimum spelling similarity (0-100)"),
    ] = None,
    limit: Annotated[
        int,
        typer.Option("--limit", "-l", help="Maximum groups to display"),
    ] = 50,
) -> None:
    """Report credit spellings that probably belong to one person."""
    from castmatch.audit import collect_credit_names, find_duplicate_names

    config = get_config(ctx)
    cutoff = threshold if threshold is not None else config.similarity_threshold

    with _open_existing(config) as db:
        counts = collect_credit_names(db, page_size=config.page_size)

    groups = find_duplicate_names(counts, similarity_threshold=cutoff)
    if not groups:
        console.print("[green]No duplicate names found.[/green]")
        return

    table = Table(title=f"Duplicate Names ({len(groups)} groups)")
    table.add_column("Kind", style="bold")
    table.add_column("Confidence")
    table.add_column("Names", style="cyan")
    table.add_column("Credits", justify="right")
    table.add_column("Reason", style="dim")

    styles = {"high": "red", "medium": "yellow", "low": "dim"}
    for group in groups[:limit]:
        style = styles.get(group.confidence, "")
        table.add_row(
            group.kind,
            f"[{style}]{group.confidence}[/{style}]" if style else group.confidence,
            " | ".join(group.names),
            " / ".join(str(counts[n]) for n in group.names),
            group.reason,
        )
    console.print(table)
    if len(groups) > limit:
        console.print(f"[dim]... {len(groups) - limit} more (use --limit)[/dim]")


@aliases_app.command("add")
def aliases_add(
    ctx: typer.Context,
    slug: Annotated[str, typer.Argument(help="Slug or spelling to register")],
    name: Annotated[str, typer.Argument(help="Canonical person name")],
    blocked: Annotated[
        bool,
        typer.Option("--blocked", help="Never resolve this alias (e.g. a shared first name)"),
    ] = False,
) -> None:
    """Register a slug alias for a canonical person name."""
    from castmatch.registry import reconcile

    config = get_config(ctx)
    with Database(config.db_path) as db:
        registry = PersonRegistry(db)
        person = reconcile(db, slug, name, registry=registry)
        if blocked:
            db.save_alias(
                AliasRecord(alias_text=slug.strip().lower(), person_id=person.person_id, is_blocked=True)
            )

    status = "Alias blocked" if blocked else "Alias saved"
    console.print(
        f"[green]{status}:[/green] '{escape(slug)}' -> "
        f"{escape(person.canonical_name)} ({person.person_id})"
    )


@aliases_app.command("exclude")
def aliases_exclude(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Canonical person name")],
    movie_slugs: Annotated[
        list[str],
        typer.Argument(help="Movie slugs wrongly credited to this person"),
    ],
) -> None:
    """Exclude misattributed movies from a person's profile permanently."""
    from castmatch.registry import exclude_movies

    config = get_config(ctx)
    with _open_existing(config) as db:
        person = exclude_movies(db, name, movie_slugs, registry=PersonRegistry(db))

    console.print(
        f"[green]Excluded:[/green] {len(person.exclude_movies)} movie(s) from "
        f"{escape(person.canonical_name)} ({person.person_id})"
    )


@aliases_app.command("list")
def aliases_list(ctx: typer.Context) -> None:
    """List reconciled persons and their registered aliases."""
    config = get_config(ctx)
    with _open_existing(config) as db:
        registry = PersonRegistry(db)

    persons = registry.all_persons()
    aliases = registry.all_aliases()
    if not persons and not aliases:
        console.print("[dim]No aliases registered. Use 'castmatch resolve SLUG --save'.[/dim]")
        return

    alias_counts: dict[str, int] = {}
    for alias in aliases:
        alias_counts[alias.person_id] = alias_counts.get(alias.person_id, 0) + 1

    people = Table(title="Persons")
    people.add_column("Person", style="bold")
    people.add_column("ID", style="dim")
    people.add_column("Aliases", justify="right")
    people.add_column("Excluded movies")
    for person in sorted(persons, key=lambda p: p.person_id):
        people.add_row(
            escape(person.canonical_name),
            person.person_id,
            str(alias_counts.get(person.person_id, 0)),
            ", ".join(person.exclude_movies),
        )
    console.print(people)

    if not aliases:
        return

    table = Table(title="Aliases")
    table.add_column("Alias", style="bold cyan")
    table.add_column("Person")
    table.add_column("Type", style="dim")
    table.add_column("Blocked", justify="center")
    for alias in sorted(aliases, key=lambda a: a.alias_text):
        person = registry.get_person(alias.person_id)
        table.add_row(
            escape(alias.alias_text),
            escape(person.canonical_name) if person else alias.person_id,
            alias.alias_type,
            "yes" if alias.is_blocked else "",
        )
    console.print(table)
