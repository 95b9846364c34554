#!/usr/bin/env python3
"""
Command-line entry point for docmunch.

Commands:
  fetch     Convert one documentation URL (or a crawl of its site) to Markdown
  add       Add a documentation source to .docmunch.yaml
  update    Refresh configured sources
  list      Show configured sources
  registry  List packages available from the docmunch registry
  pull      Download a pre-crawled package from the registry

Common options:
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Also write logs to a file
  --delay SEC         Pause between crawl requests
  --timeout SEC       Per-request timeout
  --no-browser        Never fall back to the Playwright renderer while crawling

Example:
  docmunch fetch https://docs.example.com/guide/intro --crawl -o docs.md
  docmunch add https://docs.example.com/guide/intro --crawl --name example
  docmunch update --name example
"""
import asyncio
import json
import signal
import sys
from pathlib import Path

import click

from docmunch import __version__
from docmunch.config import (
    CONFIG_FILENAME,
    DEFAULT_OUTPUT_DIR,
    CrawlSettings,
    DocmunchConfig,
    SourceConfig,
    add_source,
    load_config,
    save_config,
)
from docmunch.crawler.crawler import CancelToken
from docmunch.engine import Engine, render_pages, stitch_pages
from docmunch.errors import BrowserUnavailableError, CrawlAborted, FetchError, InvalidURLError
from docmunch.logger import init_logging
from docmunch.pipeline.writer import write_markdown
from docmunch.registry import list_sources as fetch_registry_sources
from docmunch.registry import pull_package, registry_token, registry_url
from docmunch.utils import is_valid_url, slug_from_url

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])

#: conventional exit status for "terminated by Ctrl+C"
EXIT_INTERRUPTED = 130


def print_error(message: str, code: int = 1):
    click.secho(message, fg="red", err=True)
    sys.exit(code)


def echo_progress(url: str, current: int, total: int) -> None:
    click.echo(f"  [{current}/{total}] {url}", err=True)


def confirm_partial(count: int) -> bool:
    """Ask whether to keep a partial crawl; Ctrl+C at the prompt means no."""
    try:
        previous = signal.signal(signal.SIGINT, signal.default_int_handler)
    except ValueError:  # not the main thread
        previous = None
    try:
        return click.confirm(
            f"\nCrawl interrupted. Save {count} page(s) collected so far?",
            default=True,
            err=True,
        )
    except click.Abort:
        return False
    finally:
        if previous is not None:
            signal.signal(signal.SIGINT, previous)


async def _with_sigint(engine: Engine, coro):
    with engine.cancel_token.install_sigint():
        return await coro


def _run(engine: Engine, factory):
    """Run ``factory()`` with SIGINT routed to the engine and errors mapped to exits."""
    try:
        return asyncio.run(_with_sigint(engine, factory()))
    except CrawlAborted as exc:
        click.secho(f"Aborted. {exc.pages_discarded} page(s) discarded.", fg="yellow", err=True)
        sys.exit(EXIT_INTERRUPTED)
    except BrowserUnavailableError as exc:
        print_error(f"This page needs a browser to render.\n{exc.hint}")
    except (FetchError, InvalidURLError) as exc:
        print_error(str(exc))


def _engine(ctx, *, progress: bool) -> Engine:
    return Engine(
        ctx.obj["settings"],
        on_page_fetched=echo_progress if progress else None,
        confirm_partial=confirm_partial,
        cancel_token=CancelToken(),
    )


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, "--version", "-v", message="docmunch, version %(version)s")
@click.option(
    "--log-level", "log_level",
    default="WARNING", show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Logging level",
)
@click.option(
    "--log-file", "log_file",
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help="Also write logs to this file",
)
@click.option("--delay", type=click.FloatRange(min=0), default=None, help="Seconds between crawl requests")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), default=None, help="Per-request timeout (seconds)")
@click.option("--no-browser", is_flag=True, help="Disable the browser fallback for link-poor first pages")
@click.pass_context
def cli(ctx, log_level, log_file, delay, timeout, no_browser):
    """Convert documentation sites into AI-ready Markdown."""
    init_logging(level=log_level, log_file=str(log_file) if log_file else None)
    overrides = {}
    if delay is not None:
        overrides["delay"] = delay
    if timeout is not None:
        overrides["timeout"] = timeout
    if no_browser:
        overrides["browser_fallback"] = False
    ctx.ensure_object(dict)
    ctx.obj["settings"] = CrawlSettings(**overrides)


@cli.command("fetch", context_settings=CONTEXT_SETTINGS)
@click.argument("url")
@click.option("--output", "-o", default=None, type=click.Path(dir_okay=False, path_type=Path), help="Output file (stdout if omitted)")
@click.option("--crawl", "do_crawl", is_flag=True, help="Follow sidebar/nav links")
@click.option("--max-depth", default=2, show_default=True, type=click.IntRange(min=0), help="Maximum crawl depth")
@click.pass_context
def fetch(ctx, url, output, do_crawl, max_depth):
    """Fetch URL and convert it to Markdown."""
    if not is_valid_url(url):
        print_error(f"Invalid URL: {url}")
    silent = output is None
    engine = _engine(ctx, progress=not silent)

    if do_crawl:
        if not silent:
            click.echo(f"Crawling from {url} (max depth: {max_depth})...", err=True)
        result, _strategy, _ = _run(engine, lambda: engine.crawl_site(url, max_depth))
        markdown, title, platform = stitch_pages(render_pages(result))
        if not silent:
            status = " (interrupted)" if result.interrupted else ""
            click.echo(f"Crawled {len(result.pages)} page(s){status}", err=True)
    else:
        extracted, markdown = _run(engine, lambda: engine.fetch_single(url))
        title, platform = extracted.title, extracted.platform

    write_markdown(markdown, output, source_url=url, title=title, platform=platform, force=True)
    if not silent:
        click.secho(f"Written to {output}", fg="green", err=True)


@cli.command("add", context_settings=CONTEXT_SETTINGS)
@click.argument("url")
@click.option("--name", default=None, help="Source name (derived from the hostname if omitted)")
@click.option("--crawl", "do_crawl", is_flag=True, help="Enable crawl mode for this source")
@click.option("--max-depth", default=2, show_default=True, type=click.IntRange(min=0))
@click.option("--output", "-o", default=None, help="Output file (.md) or directory name")
def add(url, name, do_crawl, max_depth, output):
    """Add a documentation source to .docmunch.yaml."""
    name = name or slug_from_url(url)
    output = output or (f"{name}/" if do_crawl else f"{name}.md")
    try:
        loaded = load_config()
    except (ValueError, TypeError) as exc:
        print_error(f"Failed to load config: {exc}")
    if loaded is not None:
        config, config_path = loaded
    else:
        config, config_path = DocmunchConfig(output_dir=DEFAULT_OUTPUT_DIR), Path.cwd() / CONFIG_FILENAME

    try:
        source = SourceConfig(name=name, url=url, crawl=do_crawl, max_depth=max_depth, output=output)
    except ValueError as exc:
        print_error(f"Invalid source: {exc}")
    add_source(config, source)
    save_config(config, config_path)
    click.secho(f'Added source "{name}" → {url}', fg="green")
    click.echo(f"Config: {config_path}")


@cli.command("update", context_settings=CONTEXT_SETTINGS)
@click.option("--name", default=None, help="Update only the named source")
@click.option("--force", is_flag=True, help="Rewrite all files even if unchanged")
@click.pass_context
def update(ctx, name, force):
    """Refresh configured documentation sources."""
    try:
        loaded = load_config()
    except (ValueError, TypeError) as exc:
        print_error(f"Failed to load config: {exc}")
    if loaded is None:
        print_error(f"No {CONFIG_FILENAME} found. Run `docmunch add <url>` first.")
    config, config_path = loaded

    sources = [s for s in config.sources if name is None or s.name == name]
    if not sources:
        print_error(f'Source "{name}" not found in config.' if name else "No sources configured.")

    for source in sources:
        click.echo(f'Updating "{source.name}" from {source.url}...', err=True)
        engine = _engine(ctx, progress=True)
        report = _run(
            engine,
            lambda: engine.update_source(source, config, config_path.parent, force=force),
        )
        parts = [f'Updated "{report.name}" → {report.output} ({report.written} written)']
        if report.unchanged > 0:
            parts.append(f"({report.unchanged} unchanged)")
        if report.interrupted:
            parts.append("[partial]")
        click.secho(" ".join(parts), fg="green")


@cli.command("list", context_settings=CONTEXT_SETTINGS)
def list_sources():
    """List configured documentation sources."""
    try:
        loaded = load_config()
    except (ValueError, TypeError) as exc:
        print_error(f"Failed to load config: {exc}")
    if loaded is None:
        click.echo(f"No {CONFIG_FILENAME} found. Run `docmunch add <url>` to get started.")
        return
    config, config_path = loaded
    click.echo(f"Config: {config_path}")
    click.echo(f"Output dir: {config.output_dir}\n")
    if not config.sources:
        click.echo("No sources configured.")
        return
    for source in config.sources:
        crawl_info = f" (crawl, depth: {source.max_depth})" if source.crawl else ""
        click.echo(f"  {source.name}{crawl_info}")
        click.echo(f"    URL:    {source.url}")
        click.echo(f"    Output: {source.output}")
        click.echo()


def _call(factory):
    """Run a registry coroutine, mapping its failures to an error exit."""
    try:
        return asyncio.run(factory())
    except FetchError as exc:
        print_error(str(exc))
    except ValueError as exc:
        print_error(f"Unexpected registry response: {exc}")


registry_url_option = click.option(
    "--registry-url", "registry_url_arg", default=None, help="Registry API base URL (default: $DOCMUNCH_REGISTRY_URL or docmunch.dev)"
)
token_option = click.option("--token", default=None, help="Auth token (default: $DOCMUNCH_TOKEN)")


@cli.command("registry", context_settings=CONTEXT_SETTINGS)
@registry_url_option
@token_option
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON listing")
@click.pass_context
def registry(ctx, registry_url_arg, token, as_json):
    """List documentation packages available from the registry."""
    base = registry_url(registry_url_arg)
    if not as_json:
        click.echo(f"Fetching sources from {base}...", err=True)
    sources = _call(lambda: fetch_registry_sources(base, registry_token(token), ctx.obj["settings"]))

    if as_json:
        click.echo(json.dumps([s.model_dump(exclude_none=True) for s in sources], indent=2, ensure_ascii=False))
        return
    if not sources:
        click.echo("No sources available in the registry.")
        return

    click.secho(f"{len(sources)} sources available:\n", fg="green")
    for source in sources:
        pages = f" ({source.page_count} pages)" if source.page_count else ""
        tokens = f" ~{round(source.total_tokens / 1000)}k tokens" if source.total_tokens else ""
        click.echo(f"  {source.name}")
        if source.display_name:
            click.echo(f"    Name:     {source.display_name}")
        click.echo(f"    URL:      {source.url}")
        click.echo(f"    Platform: {source.platform}{pages}{tokens}")
        if source.description:
            click.echo(f"    {source.description}")
        click.echo()
    click.echo("Run `docmunch pull <name>` to download a source.")


@cli.command("pull", context_settings=CONTEXT_SETTINGS)
@click.argument("name")
@registry_url_option
@token_option
@click.option("--force", is_flag=True, help="Rewrite files even if unchanged")
@click.pass_context
def pull(ctx, name, registry_url_arg, token, force):
    """Download a pre-crawled documentation package from the registry."""
    if not name or name.startswith(".") or "/" in name or "\\" in name:
        print_error(f"Invalid package name: {name}")
    try:
        loaded = load_config()
    except (ValueError, TypeError) as exc:
        print_error(f"Failed to load config: {exc}")
    if loaded is not None:
        config, config_path = loaded
        root_dir = config_path.parent / config.output_dir
    else:
        config, config_path = None, None
        root_dir = Path.cwd() / DEFAULT_OUTPUT_DIR
    output_dir = root_dir / name

    base = registry_url(registry_url_arg)
    click.echo(f'Pulling "{name}" from {base}...', err=True)
    report = _call(
        lambda: pull_package(
            name, output_dir, root_dir, base, registry_token(token), ctx.obj["settings"], force=force
        )
    )

    if config is not None:
        try:
            source = SourceConfig(name=name, url=report.url, crawl=True, output=f"{name}/")
        except ValueError as exc:
            print_error(f"Invalid source: {exc}")
        add_source(config, source)
        save_config(config, config_path)
    click.secho(f"Pulled {report.pages} page(s) to {output_dir} ({report.written} written)", fg="green")


if __name__ == "__main__":
    cli()
