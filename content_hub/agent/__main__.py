"""
CLI module for the content hub engine.

Usage:
    python -m content_hub.agent crawl https://site.com/sitemap.xml
    python -m content_hub.agent analyze https://site.com/sitemap.xml --limit 20
    python -m content_hub.agent plan "home composting"
    python -m content_hub.agent generate --topic "home composting" --sitemap https://site.com/sitemap.xml
    python -m content_hub.agent refresh https://site.com/sitemap.xml --mode links
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from content_hub.agent.events import EventType, PipelineEvent
from content_hub.agent.orchestrator import GenerationOrchestrator
from content_hub.agent.state import ArticleFormat, ContentItem, ItemStatus, Page
from content_hub.config.settings import Settings, get_settings
from content_hub.errors import ContentHubError
from content_hub.llm.client import AIClient
from content_hub.llm.providers import create_provider
from content_hub.network.fetcher import ResilientFetcher
from content_hub.planning.planner import (
    plan_cluster,
    plan_from_keyword,
    plan_link_optimization,
    plan_pillars,
    plan_rewrites,
)
from content_hub.research.page_analyzer import PageAnalyzer
from content_hub.research.sitemap import SitemapCrawler
from content_hub.utils.file_handler import FileHandler
from content_hub.utils.logger import setup_logger

console = Console()

STATUS_STYLES = {
    ItemStatus.DONE: "[green]✓ done[/green]",
    ItemStatus.ERROR: "[red]✗ error[/red]",
    ItemStatus.IDLE: "[yellow]○ idle[/yellow]",
    ItemStatus.GENERATING: "[blue]… generating[/blue]",
}

FORMAT_CHOICE = click.Choice([f.value for f in ArticleFormat])


def _fetcher(settings: Settings) -> ResilientFetcher:
    return ResilientFetcher(timeout=settings.request_timeout, proxy_templates=settings.proxy_templates)


async def _crawl(fetcher: ResilientFetcher, sitemap: str, settings: Settings, limit: Optional[int]) -> list[Page]:
    crawler = SitemapCrawler(fetcher, stale_after_days=settings.stale_after_days)
    with console.status("[bold blue]Crawling sitemap...") as status:
        pages = await crawler.crawl(sitemap, on_progress=lambda msg: status.update(f"[bold blue]{msg}"))
    return pages[:limit] if limit else pages


def _pages_table(pages: list[Page], title: str) -> Table:
    table = Table(title=title)
    table.add_column("Title", style="cyan")
    table.add_column("Slug")
    table.add_column("Days old", justify="right")
    table.add_column("Status")
    for page in pages:
        days = str(page.days_old) if page.days_old is not None else "-"
        status = "[red]stale[/red]" if page.is_stale else "[green]fresh[/green]"
        if page.analysis_status:
            status = page.analysis_status if page.analysis_status == "analyzed" else f"[red]{page.analysis_error}[/red]"
        table.add_row(page.title, page.slug, days, status)
    return table


def _print_event(event: PipelineEvent) -> None:
    if event.type in (EventType.PHASE_CHANGED, EventType.STATUS):
        console.print(f"  [dim]{event.item_id}:[/dim] {event.message}")
    elif event.type == EventType.ITEM_COMPLETED:
        console.print(f"  [green]✓[/green] {event.item_id}")
    elif event.type == EventType.ITEM_FAILED:
        console.print(f"  [red]✗[/red] {event.item_id}: {event.message}")
    elif event.type == EventType.ITEM_CANCELLED:
        console.print(f"  [yellow]○[/yellow] {event.item_id}: {event.message}")


def _save_results(items: list[ContentItem], output_dir: Path) -> int:
    """Write finished articles to final/ and rejected ones to review/."""
    saved = 0
    for item in items:
        content = item.generated_content
        if content is None:
            continue
        needs_review = item.status != ItemStatus.DONE
        metadata = content.model_dump(by_alias=True, exclude={"content"})
        metadata.update({"itemType": item.type.value, "status": item.status_text})
        paths = FileHandler.save_article(output_dir, content.slug, content.content, metadata, needs_review)
        label = "[yellow]review[/yellow]" if needs_review else "[green]final[/green]"
        console.print(f"  {label} {paths['html']}")
        saved += 1
    return saved


def _results_table(items: list[ContentItem]) -> Table:
    table = Table(title="Generation Results")
    table.add_column("Item", style="cyan")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Detail", style="dim")
    for item in items:
        table.add_row(item.title, item.type.value, STATUS_STYLES.get(item.status, item.status.value), item.status_text)
    return table


async def _run_items(
    settings: Settings,
    fetcher: ResilientFetcher,
    items: list[ContentItem],
    pages: list[Page],
    concurrency: Optional[int],
    primary_data: Optional[str],
) -> list[ContentItem]:
    orchestrator = GenerationOrchestrator.from_settings(settings, fetcher, pages=pages, primary_data=primary_data)
    orchestrator.events.subscribe(_print_event)
    orchestrator.worklist.set_items(items)

    console.print(f"\n[bold]Generating {len(items)} item(s)[/bold] against {len(pages)} known page(s)\n")
    results = await orchestrator.run(concurrency=concurrency)

    console.print()
    console.print(_results_table(results))
    saved = _save_results(results, settings.output_dir)
    console.print(f"\n[dim]Saved {saved} article(s) under[/dim] {settings.output_dir}")
    return results


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL (DEBUG, INFO, ...)")
def cli(log_level: Optional[str]):
    """Content Hub - SEO content planning, generation and internal linking."""
    load_dotenv()
    settings = get_settings()
    setup_logger(level=log_level or settings.log_level)


@cli.command()
@click.argument("sitemap")
@click.option("--limit", type=int, default=None, help="Only show the first N pages")
def crawl(sitemap: str, limit: Optional[int]):
    """List every page discovered from a sitemap."""
    asyncio.run(_run_crawl(sitemap, limit))


async def _run_crawl(sitemap: str, limit: Optional[int]):
    settings = get_settings()
    try:
        async with _fetcher(settings) as fetcher:
            pages = await _crawl(fetcher, sitemap, settings, limit)
    except ContentHubError as e:
        console.print(f"\n[bold red]❌ Crawl failed:[/bold red]\n{e}")
        sys.exit(1)

    console.print(_pages_table(pages, f"{len(pages)} page(s)"))
    stale = sum(1 for p in pages if p.is_stale)
    console.print(f"[dim]{stale} stale page(s)[/dim]")


@cli.command()
@click.argument("sitemap")
@click.option("--limit", type=int, default=None, help="Only analyze the first N pages")
@click.option("--concurrency", type=int, default=None, help="Parallel analyses")
def analyze(sitemap: str, limit: Optional[int], concurrency: Optional[int]):
    """Crawl a sitemap and run a content health analysis on each page."""
    asyncio.run(_run_analyze(sitemap, limit, concurrency))


async def _analyze(
    settings: Settings, fetcher: ResilientFetcher, pages: list[Page], concurrency: Optional[int]
) -> list[Page]:
    analyzer = PageAnalyzer(
        AIClient(create_provider(settings)),
        fetcher,
        concurrency=concurrency or settings.analysis_concurrency,
    )
    with console.status("[bold blue]Analyzing pages...") as status:
        return await analyzer.analyze_pages(
            pages,
            on_progress=lambda done, total: status.update(f"[bold blue]Analyzed {done}/{total} page(s)"),
        )


async def _run_analyze(sitemap: str, limit: Optional[int], concurrency: Optional[int]):
    settings = get_settings()
    try:
        async with _fetcher(settings) as fetcher:
            pages = await _crawl(fetcher, sitemap, settings, limit)
            pages = await _analyze(settings, fetcher, pages, concurrency)
    except ContentHubError as e:
        console.print(f"\n[bold red]❌ Analysis failed:[/bold red]\n{e}")
        sys.exit(1)

    console.print(_pages_table(pages, "Content Health"))
    path = settings.output_dir / "analysis.json"
    FileHandler.write_json(path, [p.model_dump(exclude={"crawled_content"}) for p in pages])
    console.print(f"[dim]Analysis saved to[/dim] {path}")


@cli.command()
@click.argument("topic")
@click.option("--format", "article_format", type=FORMAT_CHOICE, default="standard")
def plan(topic: str, article_format: str):
    """Show the pillar + cluster plan for a topic."""
    asyncio.run(_run_plan(topic, ArticleFormat(article_format)))


async def _run_plan(topic: str, article_format: ArticleFormat):
    settings = get_settings()
    try:
        items = await plan_cluster(AIClient(create_provider(settings)), topic, article_format)
    except ContentHubError as e:
        console.print(f"\n[bold red]❌ Failed to generate plan:[/bold red] {e}")
        sys.exit(1)

    table = Table(title=f"Content plan: {topic}")
    table.add_column("#", justify="right")
    table.add_column("Type")
    table.add_column("Title", style="cyan")
    for index, item in enumerate(items, start=1):
        table.add_row(str(index), item.type.value, item.title)
    console.print(table)


@cli.command()
@click.option("--topic", default=None, help="Generate a pillar + cluster for this topic")
@click.option("--keyword", default=None, help="Generate one article for this primary keyword")
@click.option("--sitemap", default=None, help="Sitemap of the site (enables internal linking)")
@click.option("--concurrency", type=int, default=None, help="Parallel items")
@click.option("--format", "article_format", type=FORMAT_CHOICE, default="standard")
@click.option(
    "--primary-data",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="File with primary data for scientific articles",
)
def generate(
    topic: Optional[str],
    keyword: Optional[str],
    sitemap: Optional[str],
    concurrency: Optional[int],
    article_format: str,
    primary_data: Optional[Path],
):
    """Plan and generate articles from a topic or keyword."""
    if bool(topic) == bool(keyword):
        raise click.UsageError("Pass exactly one of --topic or --keyword.")
    data = FileHandler.read_file(primary_data) if primary_data else None
    asyncio.run(_run_generate(topic, keyword, sitemap, concurrency, ArticleFormat(article_format), data))


async def _run_generate(
    topic: Optional[str],
    keyword: Optional[str],
    sitemap: Optional[str],
    concurrency: Optional[int],
    article_format: ArticleFormat,
    primary_data: Optional[str],
):
    settings = get_settings()
    try:
        async with _fetcher(settings) as fetcher:
            pages = await _crawl(fetcher, sitemap, settings, None) if sitemap else []
            if topic:
                items = await plan_cluster(AIClient(create_provider(settings)), topic, article_format)
            else:
                items = plan_from_keyword(keyword, article_format)
            results = await _run_items(settings, fetcher, items, pages, concurrency, primary_data)
    except ContentHubError as e:
        console.print(f"\n[bold red]❌ Error:[/bold red] {e}")
        sys.exit(1)

    if not any(item.status == ItemStatus.DONE for item in results):
        sys.exit(1)


@cli.command()
@click.argument("sitemap")
@click.option(
    "--mode",
    type=click.Choice(["rewrite", "links", "pillar"]),
    default="links",
    help="rewrite analyzed pages, re-link pages, or turn pages into pillars",
)
@click.option("--limit", type=int, default=None, help="Only process the first N pages")
@click.option("--concurrency", type=int, default=None, help="Parallel items")
def refresh(sitemap: str, mode: str, limit: Optional[int], concurrency: Optional[int]):
    """Update existing pages from a sitemap."""
    asyncio.run(_run_refresh(sitemap, mode, limit, concurrency))


async def _run_refresh(sitemap: str, mode: str, limit: Optional[int], concurrency: Optional[int]):
    settings = get_settings()
    try:
        async with _fetcher(settings) as fetcher:
            all_pages = await _crawl(fetcher, sitemap, settings, None)
            selected = all_pages[:limit] if limit else all_pages
            if mode == "rewrite":
                items = plan_rewrites(await _analyze(settings, fetcher, selected, None))
            else:
                items = plan_link_optimization(selected) if mode == "links" else plan_pillars(selected)

            if not items:
                console.print("[yellow]Nothing to do: no eligible pages.[/yellow]")
                return
            results = await _run_items(settings, fetcher, items, all_pages, concurrency, None)
    except ContentHubError as e:
        console.print(f"\n[bold red]❌ Error:[/bold red] {e}")
        sys.exit(1)

    if not any(item.status == ItemStatus.DONE for item in results):
        sys.exit(1)


if __name__ == "__main__":
    cli()
