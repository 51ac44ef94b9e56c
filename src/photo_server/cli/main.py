"""Main CLI interface for the photo server."""

import asyncio
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import click
import uvicorn
from rich.console import Console
from rich.table import Table

from ..core.config import Config, set_config
from ..core.errors import ConfigError, DatabaseError
from ..core.logger import get_logger
from ..meta import MetaDataError, from_exif
from ..mutex import BusyError
from ..pipeline.prerender import prerender_thumbnails
from ..thumb import ResampleFilter

console = Console()
logger = get_logger(__name__)


@click.group()
@click.option('--debug/--no-debug', default=None, help='Enable debug mode')
@click.option('--config-file', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='YAML or TOML configuration file')
@click.option('--log-level', type=str, help='Log level (trace, debug, info, warning, error)')
@click.option('--log-filename', type=click.Path(path_type=Path), help='Also write logs to this file')
@click.option('--name', type=str, help='Application name')
@click.option('--url', type=str, help='Public server URL')
@click.option('--title', type=str, help='Site title')
@click.option('--admin-password', type=str, help='Admin password')
@click.option('--webdav-password', type=str, help='WebDAV password')
@click.option('--assets-path', type=click.Path(path_type=Path), help='Assets directory')
@click.option('--config-path', type=click.Path(path_type=Path), help='Config directory')
@click.option('--cache-path', type=click.Path(path_type=Path), help='Cache directory')
@click.option('--resources-path', type=click.Path(path_type=Path), help='Resources directory')
@click.option('--originals-path', type=click.Path(path_type=Path), help='Originals directory')
@click.option('--import-path', type=click.Path(path_type=Path), help='Import directory')
@click.option('--temp-path', type=click.Path(path_type=Path), help='Temporary files directory')
@click.option('--database-driver', type=click.Choice(['internal', 'sqlite', 'mysql']),
              help='Database driver')
@click.option('--database-dsn', type=str, help='Database data source name')
@click.option('--http-host', type=str, help='HTTP server host')
@click.option('--http-port', type=int, help='HTTP server port')
@click.option('--http-mode', type=click.Choice(['debug', 'release', 'test']), help='HTTP server mode')
@click.option('--workers', type=int, help='Number of workers, 0 for automatic')
@click.option('--wakeup-interval', type=int, help='Background worker wakeup interval in seconds')
@click.option('--thumb-quality', type=int, help='Thumbnail JPEG quality (25-100)')
@click.option('--thumb-size', type=int, help='Pre-rendered thumbnail size limit (720-3840)')
@click.option('--thumb-limit', type=int, help='On-demand thumbnail size limit (720-3840)')
@click.option('--thumb-filter', type=click.Choice([f.value for f in ResampleFilter], case_sensitive=False),
              help='Thumbnail resample filter')
@click.option('--geocoding-api', type=click.Choice(['none', 'osm', 'places']), help='Geocoding API')
@click.option('--read-only/--no-read-only', default=None, help="Don't modify the originals directory")
@click.option('--public/--no-public', default=None, help='Disable password authentication')
@click.option('--experimental/--no-experimental', default=None, help='Enable experimental features')
@click.option('--detect-nsfw/--no-detect-nsfw', default=None, help='Flag photos that may be offensive')
@click.option('--upload-nsfw/--no-upload-nsfw', default=None, help='Allow uploads that may be offensive')
@click.pass_context
def main(ctx: click.Context, config_file: Optional[Path], **flags):
    """Photo Server - browse and organize your personal photo library.

    Every option can also be set with a PHOTO_SERVER_* environment variable
    or in the configuration file. Command line options take precedence.

    \b
    Examples:
    photo-server --originals-path ~/Pictures config
    photo-server --debug start
    photo-server --workers 2 thumbs
    photo-server meta ~/Pictures/IMG_0001.jpg
    """
    ctx.ensure_object(dict)

    try:
        config = Config.from_options(config_file, **flags)
    except ConfigError as e:
        console.print(f"[red]Failed to load configuration: {e}[/red]")
        ctx.exit(1)

    set_config(config)
    ctx.obj['config'] = config


@main.command('config')
@click.pass_context
def show_config(ctx: click.Context):
    """Display the effective configuration values."""
    config: Config = ctx.obj['config']

    table = Table(title="Configuration")
    table.add_column("Name", style="cyan")
    table.add_column("Value", style="green")

    rows = [
        ("name", config.name()),
        ("version", config.version()),
        ("url", config.url()),
        ("title", config.title()),
        ("subtitle", config.subtitle()),
        ("description", config.description()),
        ("author", config.author()),
        ("twitter", config.twitter()),
        ("copyright", config.copyright()),
        ("debug", config.debug()),
        ("public", config.public()),
        ("experimental", config.experimental()),
        ("read-only", config.read_only()),
        ("detect-nsfw", config.detect_nsfw()),
        ("upload-nsfw", config.upload_nsfw()),
        ("log-level", logging.getLevelName(config.log_level()).lower()),
        ("config-file", config.params.config_file or ""),
        ("assets-path", config.assets_path()),
        ("config-path", config.config_path()),
        ("settings-file", config.settings_file()),
        ("cache-path", config.cache_path()),
        ("thumb-path", config.thumb_path()),
        ("resources-path", config.resources_path()),
        ("originals-path", config.originals_path()),
        ("import-path", config.import_path()),
        ("temp-path", config.temp_path()),
        ("database-driver", config.database_driver()),
        ("database-dsn", config.database_dsn()),
        ("http-host", config.http_host()),
        ("http-port", config.http_port()),
        ("http-mode", config.http_mode()),
        ("workers", config.workers()),
        ("wakeup-interval", f"{config.wakeup_interval().total_seconds():.0f}s"),
        ("thumb-quality", config.thumb_quality()),
        ("thumb-size", config.thumb_size()),
        ("thumb-limit", config.thumb_limit()),
        ("thumb-filter", config.thumb_filter().value),
        ("geocoding-api", config.geocoding_api()),
        ("theme", config.settings().theme),
        ("language", config.settings().language),
    ]

    for name, value in rows:
        table.add_row(name, str(value))

    console.print(table)


@main.command()
@click.pass_context
def start(ctx: click.Context):
    """Start the web server."""
    from ..web.app import create_app

    config: Config = ctx.obj['config']

    try:
        config.create_directories()
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        ctx.exit(1)

    console.print(f"[blue]Starting {config.name()} on http://{config.http_host()}:{config.http_port()}[/blue]")

    try:
        uvicorn.run(
            create_app(config),
            host=config.http_host(),
            port=config.http_port(),
            log_level=logging.getLevelName(config.log_level()).lower(),
        )
    except DatabaseError as e:
        console.print(f"[red]{e}[/red]")
        ctx.exit(1)


@main.command()
@click.pass_context
def thumbs(ctx: click.Context):
    """Render thumbnails for all originals now."""
    config: Config = ctx.obj['config']

    try:
        config.propagate()
        config.create_directories()
        result = asyncio.run(prerender_thumbnails(config))
    except (ConfigError, BusyError) as e:
        console.print(f"[red]{e}[/red]")
        ctx.exit(1)
    finally:
        config.shutdown()

    console.print(
        f"[green]Rendered {result.thumbnails} thumbnails for {result.files} files[/green]"
    )

    if result.errors:
        console.print(f"[yellow]{len(result.errors)} files failed:[/yellow]")
        for error in result.errors:
            console.print(f"  {error}")
        ctx.exit(1)


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def meta(ctx: click.Context, path: Path):
    """Show metadata extracted from an image file."""
    try:
        data = from_exif(path)
    except MetaDataError as e:
        console.print(f"[red]{e}[/red]")
        ctx.exit(1)

    table = Table(title=path.name)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")

    for name, value in asdict(data).items():
        if name == "all" or value in ("", None, 0, 0.0, False):
            continue
        table.add_row(name, str(value))

    console.print(table)


if __name__ == '__main__':
    main()
