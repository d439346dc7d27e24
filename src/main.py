"""CLI entry point for the blog feed generator."""
import asyncio
from pathlib import Path

import click

from src.config import get_project_dir, load_config


def _load(config_path: str | None) -> dict:
    try:
        return load_config(Path(config_path) if config_path else None)
    except (ValueError, OSError) as e:
        click.echo(f"Error: invalid config: {e}", err=True)
        raise SystemExit(1)


@click.group()
def cli():
    """Blog feed generator - build feed.xml from markdown posts."""
    pass


@cli.command()
@click.option("--root", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Project root holding pages/ and public/ (default: project directory)")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Feed output path (default: public/feed.xml under the root)")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), default=None,
              help="Config file (default: config/config.yaml)")
@click.option("--dry-run", is_flag=True, help="Print the feed instead of writing it")
@click.option("--verbose", "-v", is_flag=True, help="Show debug output")
def generate(root: Path | None, output: Path | None, config_path: str | None, dry_run: bool, verbose: bool):
    """Generate the RSS feed from the posts directory."""
    import logging

    from src.feed_generator import generate as generate_feed
    from src.feed_items import FeedError
    from src.logging_config import setup_logging

    config = _load(config_path)
    root = root.absolute() if root else None
    log_dir = (root or get_project_dir()) / "logs"
    setup_logging(None if dry_run else log_dir, config["logging"]["retention_days"], verbose)
    logger = logging.getLogger(__name__)
    logger.info("feed generation starting")

    try:
        report = asyncio.run(generate_feed(config, root=root, output_path=output, dry_run=dry_run))
    except (FeedError, OSError) as e:
        logger.error(f"Feed generation failed: {e}")
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    if dry_run:
        click.echo(report.xml.decode("utf-8"))
        return

    click.echo(f"Items: {report.items}")
    if report.skipped:
        click.echo(f"Skipped (no date): {report.skipped}")
    if report.errors:
        click.echo(f"Left out after errors: {len(report.errors)}")
        for err in report.errors:
            click.echo(f"  ✗ {err.path}: {err.error}")
    click.echo(f"Wrote: {report.output_path}")


@cli.command()
@click.option("--year", type=int, default=None, help="Year to show (default: current year)")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), default=None,
              help="Config file (default: config/config.yaml)")
def footer(year: int | None, config_path: str | None):
    """Print the site footer markup."""
    from src.footer import render_footer

    click.echo(render_footer(_load(config_path), year), nl=False)


if __name__ == "__main__":
    cli()
