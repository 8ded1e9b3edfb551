"""linker CLI.

Click-based command line interface for the local link index.

Usage:
    linker                      browse all links, most used first
    linker go cli               search for links matching the terms
    linker search --print go    print ranked lines instead of picking
    linker add https://go.dev/blog --title "Go Blog" --tag go --label lang=go
    linker serve                run the MCP server on stdio
"""
import asyncio
import sys
from datetime import datetime, timezone
from typing import Optional

import click

from linker.config import WEIGHTS_FILE_NAME, get_config, load_weights
from linker.enrichment import fetch_page_title
from linker.launcher import open_url
from linker.link_store import JsonLinkStore, get_index_dir, get_links_path
from linker.models import Link, parse_labels
from linker.scoring import Weights, rank
from linker.selector import render_line, select_link

_store: Optional[JsonLinkStore] = None


def get_store() -> JsonLinkStore:
    global _store
    if _store is None:
        _store = JsonLinkStore(get_links_path(get_config().index_dir))
        _store.load()
    return _store


def get_weights() -> Weights:
    """Load weights from the index directory, exiting on a bad file."""
    path = get_index_dir(get_config().index_dir) / WEIGHTS_FILE_NAME
    try:
        return load_weights(path)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


class DefaultCommandGroup(click.Group):
    """Group that runs a default command when no command name is given."""

    default_command = "search"

    def parse_args(self, ctx, args):
        if not args or (args[0] not in self.commands and args[0] not in ctx.help_option_names):
            args = [self.default_command] + list(args)
        return super().parse_args(ctx, args)


# =============================================================================
# Root group
# =============================================================================

@click.group(cls=DefaultCommandGroup)
def cli():
    """linker - local link index with ranked search."""
    pass


# =============================================================================
# Search
# =============================================================================

@cli.command()
@click.argument("terms", nargs=-1)
@click.option("--print", "print_only", is_flag=True, help="Print ranked links instead of picking one")
def search(terms, print_only):
    """Rank links against TERMS and pick one to open."""
    store = get_store()
    results = rank(store.links, list(terms), get_weights())

    if not results:
        click.echo("no matches")
        return

    if print_only:
        for scored in results:
            click.echo(render_line(scored))
        return

    config = get_config()
    chosen = select_link(results, config.selector.command, config.selector.timeout)
    if chosen is None:
        return

    url = chosen.link.url
    if not open_url(url, config.opener):
        return

    try:
        store.record_open(chosen.link, datetime.now(timezone.utc))
    except (KeyError, OSError) as e:
        click.echo(f"Warning: could not record open of {url}: {e}", err=True)


# =============================================================================
# Add
# =============================================================================

@cli.command()
@click.argument("url")
@click.option("--title", "-n", default="", help="Title for the link")
@click.option("--comment", "-c", default="", help="Comment for the link")
@click.option("--tag", "-t", "tags", multiple=True, help="Tag (repeatable, or comma separated)")
@click.option("--label", "-l", "labels", multiple=True, help="Label as key=value (repeatable)")
@click.option("--fetch-title", is_flag=True, help="Fetch the page title when --title is not given")
def add(url, title, comment, tags, labels, fetch_title):
    """Add URL to the index."""
    if fetch_title and not title:
        title = asyncio.run(fetch_page_title(url)) or ""

    link = Link.create(url, title=title, comment=comment, tags=tags, labels=parse_labels(labels))

    store = get_store()
    store.append(link)

    try:
        store.persist()
    except OSError as e:
        click.echo(f"Error: could not save {store.path}: {e}", err=True)
        sys.exit(1)

    click.echo(f"added: {url}")


# =============================================================================
# Serve
# =============================================================================

@cli.command()
def serve():
    """Run the MCP server on stdio."""
    from linker.server import main

    asyncio.run(main())

