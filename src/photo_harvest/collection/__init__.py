"""Collection CLI: full collection runs, keyword scrapes and website crawls."""

import argparse
import logging


def main() -> None:
    """CLI entry point for image collection."""
    parser = argparse.ArgumentParser(description="Photo catalog collection")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    # collect
    run_parser = subparsers.add_parser(
        "collect", help="Collect images for every locale x category bucket"
    )
    run_parser.add_argument("--project", required=True, help="Project name")
    run_parser.add_argument(
        "--target", type=int, default=None, help="Total images to collect (default: from config)"
    )
    run_parser.add_argument(
        "--delay", type=float, default=None, help="Seconds between attempts (default: from config)"
    )
    run_parser.add_argument(
        "--locale", action="append", help="Restrict the run to these locales (repeatable)"
    )
    run_parser.add_argument(
        "--category", action="append", help="Restrict the run to these categories (repeatable)"
    )

    # scrape
    scrape_parser = subparsers.add_parser("scrape", help="Scrape sites for explicit keywords")
    scrape_parser.add_argument("--project", required=True, help="Project name")
    scrape_parser.add_argument("--keyword", action="append", required=True, help="Keyword")
    scrape_parser.add_argument(
        "--site", action="append", required=True, help="Site: pixabay, pexels, unsplash, ..."
    )
    scrape_parser.add_argument(
        "--language", action="append", help="Per-site language, e.g. pixabay:ja or pexels:ja-JP"
    )

    # crawl
    crawl_parser = subparsers.add_parser("crawl", help="Crawl websites for images")
    crawl_parser.add_argument("--project", required=True, help="Project name")
    crawl_parser.add_argument("--url", action="append", required=True, help="Start URL")
    crawl_parser.add_argument(
        "--max-pages", type=int, default=None, help="Page limit per site (default: from config)"
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return

    if args.command == "collect":
        _cmd_collect(args)
    elif args.command == "scrape":
        _cmd_scrape(args)
    elif args.command == "crawl":
        _cmd_crawl(args)


def _cmd_collect(args: argparse.Namespace) -> None:
    """Run a collection in the foreground with a progress bar over buckets."""
    import asyncio

    from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

    from photo_harvest.catalog import resolve_project_id
    from photo_harvest.catalog.store import CatalogStore
    from photo_harvest.collection.orchestrator import CollectionOrchestrator
    from photo_harvest.collection.sources import build_registry, open_client
    from photo_harvest.collection.taxonomy import CATEGORIES, LANGUAGES
    from photo_harvest.config import ATTEMPT_DELAY_SECONDS, COLLECTION_TARGET
    from photo_harvest.db import get_connection

    languages = tuple(
        lang for lang in LANGUAGES if not args.locale or lang.code in args.locale
    )
    categories = {k: c for k, c in CATEGORIES.items() if not args.category or k in args.category}
    if not languages or not categories:
        print("Error: no matching locales or categories")
        return

    conn = get_connection()
    project_id = resolve_project_id(conn, args.project)
    if project_id is None:
        conn.close()
        return

    with Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TextColumn("{task.completed}/{task.total}"),
    ) as progress:
        task = progress.add_task("Collecting", total=len(languages) * len(categories))

        def on_bucket_done(ctx, result) -> None:
            progress.update(
                task,
                advance=1,
                description=f"{result.locale}/{result.category} ({ctx.total_collected} images)",
            )

        async def collect():
            async with open_client() as client:
                orchestrator = CollectionOrchestrator(
                    CatalogStore(conn),
                    build_registry(client),
                    languages=languages,
                    categories=categories,
                    total_target=args.target if args.target is not None else COLLECTION_TARGET,
                    delay=args.delay if args.delay is not None else ATTEMPT_DELAY_SECONDS,
                    on_bucket_done=on_bucket_done,
                )
                return await orchestrator.run(project_id)

        report = asyncio.run(collect())

    conn.close()
    print(f"\nDone. Collected {report.total_images}/{report.target} images.")
    for state, count in sorted(report.bucket_states.items()):
        print(f"  {state}: {count} buckets")
    for source, count in sorted(report.source_distribution.items()):
        print(f"  {source}: {count} images")


def _cmd_scrape(args: argparse.Namespace) -> None:
    import asyncio

    from photo_harvest.catalog import resolve_project_id
    from photo_harvest.catalog.store import CatalogStore
    from photo_harvest.collection.scrape import scrape_keywords
    from photo_harvest.collection.sources import build_registry, open_client
    from photo_harvest.db import get_connection

    conn = get_connection()
    project_id = resolve_project_id(conn, args.project)
    if project_id is None:
        conn.close()
        return
    async def scrape() -> int:
        async with open_client() as client:
            return await scrape_keywords(
                CatalogStore(conn),
                build_registry(client),
                project_id,
                keywords=args.keyword,
                sites=args.site,
                languages=args.language,
            )

    added = asyncio.run(scrape())
    conn.close()
    print(f"Added {added} new images.")


def _cmd_crawl(args: argparse.Namespace) -> None:
    import asyncio

    from photo_harvest.catalog import resolve_project_id
    from photo_harvest.catalog.store import CatalogStore
    from photo_harvest.collection.scrape import crawl_websites
    from photo_harvest.collection.sources import build_registry, open_client
    from photo_harvest.config import CRAWL_MAX_PAGES
    from photo_harvest.db import get_connection

    conn = get_connection()
    project_id = resolve_project_id(conn, args.project)
    if project_id is None:
        conn.close()
        return
    async def crawl() -> int:
        async with open_client() as client:
            return await crawl_websites(
                CatalogStore(conn),
                build_registry(client),
                project_id,
                urls=args.url,
                max_pages=args.max_pages if args.max_pages is not None else CRAWL_MAX_PAGES,
            )

    added = asyncio.run(crawl())
    conn.close()
    print(f"Added {added} new images.")
