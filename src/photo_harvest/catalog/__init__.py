"""Catalog CLI: projects, browsing, usage, deletion, distributions, progress and URL migration."""

import argparse
import logging


def main() -> None:
    """CLI entry point for catalog management."""
    parser = argparse.ArgumentParser(description="Photo catalog manager")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    # init-db
    subparsers.add_parser("init-db", help="Initialize the database schema")

    # create-project
    cp_parser = subparsers.add_parser("create-project", help="Create a new project")
    cp_parser.add_argument("name", help="Project name (must be unique)")

    # projects
    subparsers.add_parser("projects", help="List projects")

    # list
    list_parser = subparsers.add_parser("list", help="List catalog entries of a project")
    list_parser.add_argument("--project", required=True, help="Project name")
    list_parser.add_argument("--locale", action="append", help="Filter by locale (repeatable)")
    list_parser.add_argument("--language", action="append", help="Filter by language")
    list_parser.add_argument("--image-type", action="append", help="Filter by category key")
    list_parser.add_argument("--text-amount", action="append", help="Filter by text amount")
    list_parser.add_argument(
        "--usage", action="append", choices=["0", "1", "2", "3", "4+"], help="Filter by usage"
    )
    list_parser.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    list_parser.add_argument("--limit", type=int, default=100, help="Page size (default: 100)")

    # use
    use_parser = subparsers.add_parser("use", help="Mark the N least-used photos as used")
    use_parser.add_argument("--project", required=True, help="Project name")
    use_parser.add_argument(
        "--count", type=_positive_int, default=1, help="Number of photos (default: 1)"
    )

    # delete
    del_parser = subparsers.add_parser("delete", help="Delete catalog entries by id")
    del_parser.add_argument("--project", required=True, help="Project name")
    del_parser.add_argument("ids", nargs="+", type=int, help="Entry ids")

    # distribution
    dist_parser = subparsers.add_parser("distribution", help="Entry counts per column value")
    dist_parser.add_argument("--project", required=True, help="Project name")
    dist_parser.add_argument(
        "--field",
        default="locale",
        choices=["language", "locale", "text_amount", "image_type", "source"],
        help="Column to group by (default: locale)",
    )

    # progress
    prog_parser = subparsers.add_parser("progress", help="Show collection progress")
    prog_parser.add_argument("--project", required=True, help="Project name")

    # migration-status / migrate
    for name, help_text in (
        ("migration-status", "Count entries whose URLs need migration"),
        ("migrate", "Rewrite transient URLs to permanent ones"),
    ):
        mig_parser = subparsers.add_parser(name, help=help_text)
        mig_parser.add_argument("--project", required=True, help="Project name")
        mig_parser.add_argument("--source", default="pixabay", help="Source (default: pixabay)")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return

    if args.command == "init-db":
        from photo_harvest.db import get_connection

        conn = get_connection()
        conn.close()
        print("Database initialized successfully.")

    elif args.command == "create-project":
        from photo_harvest.catalog.repository import create_project
        from photo_harvest.db import get_connection

        conn = get_connection()
        project = create_project(conn, args.name)
        conn.close()
        print(f"Created project {project.name!r} (id={project.id}).")

    elif args.command == "projects":
        from photo_harvest.catalog.repository import count_by, list_projects
        from photo_harvest.db import get_connection

        conn = get_connection()
        for project in list_projects(conn):
            count = count_by(conn, {"project_id": project.id})
            print(f"  {project.id:>4}  {count:>7} photos  {project.name}")
        conn.close()

    elif args.command == "list":
        _cmd_list(args)

    elif args.command == "use":
        _cmd_use(args)

    elif args.command == "delete":
        _cmd_delete(args)

    elif args.command == "distribution":
        _cmd_distribution(args)

    elif args.command == "progress":
        _cmd_progress(args)

    elif args.command in ("migration-status", "migrate"):
        _cmd_migration(args)


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def resolve_project_id(conn, name: str) -> int | None:
    """Look up a project id by name, printing an error when it does not exist."""
    from photo_harvest.catalog.repository import get_project_by_name

    project = get_project_by_name(conn, name)
    if project is None:
        print(f"Error: project {name!r} not found")
        return None
    return project.id


def _cmd_list(args: argparse.Namespace) -> None:
    from photo_harvest.catalog.repository import (
        available_filters,
        count_by,
        count_entries,
        list_entries,
    )
    from photo_harvest.db import get_connection

    conn = get_connection()
    project_id = resolve_project_id(conn, args.project)
    if project_id is None:
        conn.close()
        return

    filters = {
        column: values
        for column, values in (
            ("locale", args.locale),
            ("language", args.language),
            ("image_type", args.image_type),
            ("text_amount", args.text_amount),
        )
        if values
    }
    entries = list_entries(
        conn, project_id, filters=filters, usage=args.usage, page=args.page, limit=args.limit
    )
    total = count_by(conn, {"project_id": project_id})
    filtered = count_entries(conn, project_id, filters=filters, usage=args.usage)
    options = available_filters(conn, project_id)
    conn.close()

    print(f"{filtered} of {total} entries match (page {args.page}, {len(entries)} shown)")
    for column, values in options.items():
        print(f"  {column}: {', '.join(str(v) for v in values) or '-'}")
    for entry in entries:
        print(
            f"[{entry.locale or '-'} {entry.image_type or '-'} used={entry.usage_count}] "
            f"{entry.url}"
        )


def _cmd_use(args: argparse.Namespace) -> None:
    from photo_harvest.catalog.repository import use_photos
    from photo_harvest.db import get_connection

    conn = get_connection()
    project_id = resolve_project_id(conn, args.project)
    if project_id is None:
        conn.close()
        return
    entries = use_photos(conn, project_id, args.count)
    conn.close()
    if not entries:
        print("No photos available.")
        return
    for entry in entries:
        print(f"  used={entry.usage_count}  {entry.url}")


def _cmd_progress(args: argparse.Namespace) -> None:
    import asyncio

    from rich.console import Console
    from rich.table import Table

    from photo_harvest.catalog.store import CatalogStore
    from photo_harvest.collection.jobs import collection_progress
    from photo_harvest.config import COLLECTION_TARGET
    from photo_harvest.db import get_connection

    conn = get_connection()
    project_id = resolve_project_id(conn, args.project)
    if project_id is None:
        conn.close()
        return
    snapshot = asyncio.run(collection_progress(CatalogStore(conn), project_id, COLLECTION_TARGET))
    conn.close()

    console = Console()
    console.print(
        f"[bold]{snapshot.total_images}[/bold]/{snapshot.target} images ({snapshot.percent}%)"
    )
    for title, distribution in (
        ("Locale", snapshot.language_distribution),
        ("Category", snapshot.category_distribution),
        ("Source", snapshot.source_distribution),
    ):
        table = Table(title=f"By {title.lower()}")
        table.add_column(title)
        table.add_column("Images", justify="right")
        for value, count in distribution.items():
            table.add_row(value, str(count))
        console.print(table)


def _cmd_migration(args: argparse.Namespace) -> None:
    import asyncio

    from photo_harvest.catalog.store import CatalogStore
    from photo_harvest.db import get_connection
    from photo_harvest.migration import MigrationEngine

    conn = get_connection()
    project_id = resolve_project_id(conn, args.project)
    if project_id is None:
        conn.close()
        return
    engine = MigrationEngine(CatalogStore(conn))

    if args.command == "migration-status":
        status = asyncio.run(engine.scan_for_migration(project_id, args.source))
        print(f"Source: {args.source}")
        print(f"  Total:            {status.total_for_source}")
        print(f"  Needs migration:  {status.needing_migration}")
        print(f"  Already migrated: {status.already_migrated}")
        print(f"  Permanent:        {status.permanent}")
    else:
        result = asyncio.run(engine.migrate(project_id, args.source))
        print(f"Migrated {result.migrated}/{result.total} entries ({result.failed} failed).")
    conn.close()


def _cmd_delete(args: argparse.Namespace) -> None:
    from photo_harvest.catalog.repository import delete_entries
    from photo_harvest.db import get_connection

    conn = get_connection()
    project_id = resolve_project_id(conn, args.project)
    if project_id is None:
        conn.close()
        return
    deleted = delete_entries(conn, project_id, args.ids)
    conn.close()
    print(f"Deleted {deleted} of {len(args.ids)} entries.")


def _cmd_distribution(args: argparse.Namespace) -> None:
    from rich.console import Console
    from rich.table import Table

    from photo_harvest.catalog.repository import distribution
    from photo_harvest.db import get_connection

    conn = get_connection()
    project_id = resolve_project_id(conn, args.project)
    if project_id is None:
        conn.close()
        return
    counts = distribution(conn, project_id, args.field)
    conn.close()

    table = Table(title=f"{args.project} by {args.field}")
    table.add_column(args.field)
    table.add_column("Images", justify="right")
    for value, count in counts.items():
        table.add_row(str(value) if value is not None else "unknown", str(count))
    Console().print(table)
