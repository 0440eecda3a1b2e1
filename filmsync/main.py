"""CLI entry point for filmsync."""
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import click

from filmsync.config import get_database_path, load_config
from filmsync.database import MetadataStore
from filmsync.exceptions import BackendError, ConfigError, FilmSyncError


def get_db(config: dict | None = None) -> MetadataStore:
    """Get metadata store instance."""
    config = config or load_config()
    return MetadataStore(get_database_path(config))


def _duration(started_at: str, completed_at: str) -> str:
    # SQLite CURRENT_TIMESTAMP is UTC
    started = datetime.fromisoformat(started_at).replace(tzinfo=ZoneInfo('UTC'))
    completed = datetime.fromisoformat(completed_at).replace(tzinfo=ZoneInfo('UTC'))
    seconds = (completed - started).total_seconds()
    return f"{int(seconds // 60)}m {int(seconds % 60)}s"


@click.group()
def cli():
    """filmsync - Publish festival films from Google Sheets and Drive to WordPress."""
    pass


@cli.command()
@click.option("--year", "-y", type=str, default=None, help="Only process films of this edition year")
@click.option("--limit", "-n", type=int, default=None, help="Limit number of films to process")
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None, help="Path to config.yaml")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed progress during execution")
def run(year: str | None, limit: int | None, config_path: Path | None, verbose: bool):
    """Sync films to WordPress."""
    from filmsync.config import get_project_dir, validate_config
    from filmsync.logging_config import close_logging, setup_logging
    from filmsync.pipeline import run_sync

    try:
        config = load_config(config_path)
        validate_config(config)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        raise SystemExit(2)

    log_dir = get_project_dir() / "logs"
    retention_days = config.get("logging", {}).get("retention_days", 30)
    logger = setup_logging(log_dir, retention_days, verbose)
    logger.info("filmsync starting" + (f" for edition {year}" if year else ""))

    try:
        result = run_sync(config, year=year, limit=limit, log=logger)
    except FilmSyncError as e:
        logger.error(f"Sync aborted: {e}")
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    finally:
        close_logging(logger)

    click.echo(f"Processed: {result.processed}, Succeeded: {result.succeeded}, Failed: {result.failed}")
    if result.failures:
        click.echo("Failed films:")
        for title, error in result.failures:
            click.echo(f"  ✗ {title}: {error}")
        raise SystemExit(1)


@cli.command()
@click.option('--last-run', is_flag=True, help='Show detailed report of last sync run')
def status(last_run: bool):
    """Show sync status: last run and tracked films."""
    from filmsync.database import format_timestamp

    db = get_db()

    if last_run:
        run_data = db.get_run_details()
        if not run_data:
            click.echo("No sync runs found")
            return

        started = format_timestamp(run_data['started_at'])
        if run_data['completed_at']:
            completed = format_timestamp(run_data['completed_at'])
            duration_str = _duration(run_data['started_at'], run_data['completed_at'])
        else:
            completed = 'In progress'
            duration_str = 'Running...'

        click.echo(f"Last Run: {started} - {completed} ({duration_str})")
        click.echo(f"Status: {run_data['status'].capitalize()}")
        if run_data['year']:
            click.echo(f"Edition: {run_data['year']}")
        click.echo()

        click.echo("Summary:")
        click.echo(f"  Processed: {run_data['items_processed']} films")
        click.echo(f"  Failed: {run_data['items_failed']}")
        click.echo()

        if run_data['entities']:
            click.echo("Films Published:")
            for entity in run_data['entities']:
                click.echo(f"  ✓ {entity['title']} → post {entity['post_id']}")
            click.echo()

        if run_data['failed']:
            click.echo("Failed Films:")
            for item in run_data['failed']:
                click.echo(f"  ✗ {item['title']}")
                click.echo(f"    Error: {item['error']}")
            click.echo()

        return

    last_run_time = db.get_last_successful_run()
    if last_run_time:
        click.echo(f"Last successful run: {last_run_time.strftime('%Y-%m-%d %H:%M')}")
    else:
        click.echo("No previous runs")

    click.echo(f"Tracked films: {len(db.list_entities())}")


@cli.command()
@click.option("--year", "-y", type=str, default=None, help="Only show menus whose name or slug mention this year")
def menus(year: str | None):
    """List WordPress navigation menus (to pick a menu_id for template styles)."""
    from filmsync.wordpress import WordPressClient

    config = load_config()
    client = WordPressClient.from_config(config)
    try:
        menu_list = client.list_menus()
    except BackendError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    finally:
        client.close()

    if year:
        menu_list = [m for m in menu_list if year in m.name or year in m.slug]

    if not menu_list:
        click.echo("No menus found")
        return

    for menu in menu_list:
        click.echo(f"[{menu.id}] {menu.name} ({menu.slug})")


@cli.command("init-config")
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
def init_config(force: bool):
    """Write a default config/config.yaml."""
    from filmsync.config import write_default_config

    try:
        path = write_default_config(force=force)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    click.echo(f"Wrote: {path}")


if __name__ == "__main__":
    cli()
