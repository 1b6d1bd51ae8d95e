"""
Main CLI interface for ytdl-pipeline

This module provides the command-line interface over the Ytdl orchestrator.
It serves as the primary entry point for user interactions with the
application.

The CLI is built using Click framework and provides commands for:
- Metadata extraction (extract), printed as a summary or as JSON
- Media download (download) of a single item or of selected playlist entries
- Raw extractor launch with the configured options (run)
- Metadata cache maintenance (clear-cache)
"""

import json
import sys
import click
import functools
from typing import Iterable, Optional

from . import __version__
from .config.options import Options, parse_flag
from .config.settings import get_settings, reload_settings
from .exceptions import ConfigError
from .ytdl.cache import MetadataCache
from .ytdl.orchestrator import Ytdl, OperationResult
from .ytdl.indexes import (
    PLAYLIST_START,
    PLAYLIST_END,
    PLAYLIST_ITEMS,
    PLAYLIST_REVERSE,
    PLAYLIST_RANDOM,
)
from .utils.logger import configure_from_settings, get_logger
from .utils.validation import (
    validate_url,
    validate_playlist_items,
    validate_output_directory,
)


# Initialize logging system from configuration settings
configure_from_settings()
logger = get_logger(__name__)


def handle_error(func):
    """
    Decorator to handle common CLI errors gracefully

    Wraps CLI command functions to provide consistent error handling across
    all commands. Catches exceptions escaping the pipeline and turns them into
    a red message and a non-zero exit code.

    Args:
        func: The CLI command function to wrap

    Returns:
        Wrapped function with error handling
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo(click.style("\n\nOperation cancelled by user", fg='yellow'))
            sys.exit(130)  # Standard exit code for SIGINT
        except Exception as e:
            logger.error(f"Command failed: {e}")
            click.echo(click.style(f"Error: {e}", fg='red'), err=True)
            sys.exit(1)
    return wrapper


def fail(message: str) -> None:
    """Print an error message and exit with status 1"""
    click.echo(click.style(message, fg='red'), err=True)
    sys.exit(1)


def build_options(extractor_options: Iterable[str], media_format: Optional[str] = None) -> Options:
    """
    Build the extractor option store for a command

    Configured default flags come first, then -x/--extractor-option values,
    then dedicated command options such as --format.

    Args:
        extractor_options: Raw "--flag=value" strings
        media_format: Value for -f, if given

    Returns:
        Options ready for Ytdl
    """
    options = Options(get_settings().extractor.options)
    for raw in extractor_options:
        try:
            flag, value = parse_flag(raw)
        except ValueError as e:
            fail(f"Invalid extractor option '{raw}': {e}")
        options.set_option(flag, value)

    if media_format:
        options.remove_option('--format')
        options.set_option('-f', media_format)

    return options


def create_ytdl(options: Options, no_cache: bool = False) -> Ytdl:
    """Create the orchestrator for a command"""
    ytdl = Ytdl(options)
    if no_cache:
        ytdl.set_cache(enabled=False)
    return ytdl


def report_errors(result: OperationResult, verbose: bool = False) -> None:
    """Print the diagnostics of an operation to stderr"""
    if not result.errors:
        return

    click.echo(click.style(f"{len(result.errors)} issue(s) reported by the extractor", fg='yellow'), err=True)
    shown = result.errors if verbose else result.errors[:10]
    for error in shown:
        click.echo(f"   {error}", err=True)
    if len(result.errors) > len(shown):
        click.echo(f"   ... {len(result.errors) - len(shown)} more (use --verbose)", err=True)


def print_summary(info_dict: dict) -> None:
    """Print a short human-readable summary of a metadata record"""
    click.echo(f"Title: {info_dict.get('title', '')}")
    if info_dict.get('webpage_url'):
        click.echo(f"URL: {info_dict['webpage_url']}")

    if Ytdl.is_playlist(info_dict):
        entries = info_dict.get('entries') or []
        click.echo(f"Playlist: {len(entries)} entries")
        for number, entry in enumerate(entries, 1):
            click.echo(f"   {number}. {entry.get('title', '')}")
    else:
        for key in ('id', 'ext', 'format', 'duration'):
            if info_dict.get(key) is not None:
                click.echo(f"{key.capitalize()}: {info_dict[key]}")


# Main CLI group - root command that all subcommands attach to
@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--config', type=click.Path(), help='Path to config file')
@click.pass_context
def cli(ctx, version, verbose, config):
    """
    ytdl-pipeline - cached metadata extraction and playlist download

    Drives yt-dlp (or youtube-dl): extracts metadata once, caches it, and
    downloads the selected entries of a playlist one by one so that a broken
    entry does not stop the others.
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose

    if version:
        click.echo(f"ytdl-pipeline v{__version__}")
        return

    if config:
        try:
            reload_settings(config)
        except ConfigError as e:
            fail(f"Error: {e}")
        configure_from_settings()
        logger.info(f"Loaded config: {config}")

    settings = get_settings()
    try:
        settings.validate()
    except ConfigError as e:
        fail(f"Invalid configuration: {e}")

    if verbose:
        logger.info("Verbose mode enabled")
        logger.console_info(f"{settings} (config file: {settings.loaded_from or 'none'})")

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument('link')
@click.option('--json', 'as_json', is_flag=True, help='Print the full metadata as JSON')
@click.option('--extractor-option', '-x', 'extractor_options', multiple=True,
              help='Extra extractor flag, as --flag=value (repeatable)')
@click.option('--no-cache', is_flag=True, help='Bypass the metadata cache')
@click.pass_context
@handle_error
def extract(ctx, link, as_json, extractor_options, no_cache):
    """
    Extract the metadata of a link

    Uses the cached metadata when it is fresh. Playlists are always extracted
    whole; missing entries are dropped and repeated titles renamed.

    Args:
        link: Media or playlist URL
        as_json: Print the sanitized metadata as JSON instead of a summary
        extractor_options: Additional extractor flags
        no_cache: Neither read nor write the metadata cache
    """
    is_valid, error_msg = validate_url(link)
    if not is_valid:
        fail(f"Invalid URL: {error_msg}")

    ytdl = create_ytdl(build_options(extractor_options), no_cache)
    result = ytdl.extract_infos(link)

    report_errors(result, ctx.obj.get('verbose', False))

    if not result.has_data:
        fail(f"No metadata found for {link}")

    if as_json:
        click.echo(json.dumps(result.data, indent=2, ensure_ascii=False))
    else:
        print_summary(result.data)


@cli.command()
@click.argument('link')
@click.option('--output', '-o', type=click.Path(), help='Output directory')
@click.option('--format', '-f', 'media_format', help='Extractor format selector (default from config)')
@click.option('--items', help='Playlist items to download, e.g. "1,3-5"')
@click.option('--start', type=int, help='First playlist item (1-based)')
@click.option('--end', type=int, help='Last playlist item (1-based)')
@click.option('--reverse', is_flag=True, help='Download playlist items in reverse order')
@click.option('--random', 'shuffle', is_flag=True, help='Download playlist items in random order')
@click.option('--extractor-option', '-x', 'extractor_options', multiple=True,
              help='Extra extractor flag, as --flag=value (repeatable)')
@click.option('--no-cache', is_flag=True, help='Bypass the metadata cache')
@click.pass_context
@handle_error
def download(ctx, link, output, media_format, items, start, end, reverse, shuffle, extractor_options, no_cache):
    """
    Download a single item or the selected entries of a playlist

    Metadata is taken from the cache or extracted first; every selected
    playlist entry is then downloaded from it in its own extractor run.

    Args:
        link: Media or playlist URL
        output: Download directory (overrides config)
        media_format: Format selector passed to the extractor as -f
        items: Playlist item list, overrides --start/--end
        start: First playlist item
        end: Last playlist item
        reverse: Reverse order
        shuffle: Random order
        extractor_options: Additional extractor flags
        no_cache: Neither read nor write the metadata cache
    """
    is_valid, error_msg = validate_url(link)
    if not is_valid:
        fail(f"Invalid URL: {error_msg}")

    if items is not None:
        is_valid, error_msg = validate_playlist_items(items)
        if not is_valid:
            fail(f"Invalid playlist items: {error_msg}")

    if output:
        is_valid, error_msg = validate_output_directory(output)
        if not is_valid:
            fail(f"Invalid output directory: {error_msg}")

    options = build_options(extractor_options, media_format)
    playlist_flags = {
        PLAYLIST_ITEMS: items,
        PLAYLIST_START: start,
        PLAYLIST_END: end,
    }
    for flag, value in playlist_flags.items():
        if value is not None:
            options.set_option(flag, value)
    if reverse:
        options.set_option(PLAYLIST_REVERSE)
    if shuffle:
        options.set_option(PLAYLIST_RANDOM)

    data_folder = output or get_settings().get_output_directory()

    ytdl = create_ytdl(options, no_cache)
    result = ytdl.download(link, data_folder=data_folder)

    report_errors(result, ctx.obj.get('verbose', False))

    if result.data is None:
        fail(f"Nothing to download for {link}")

    files = result.downloaded_files()
    if Ytdl.is_playlist(result.data):
        total = len(result.data.get('entries') or [])
        logger.console_info(f"{result.data.get('title', '')}: {len(files)} of {total} entries downloaded")
    elif files:
        logger.console_info(f"Downloaded: {result.data.get('title', '')}")

    for path in files:
        click.echo(path)

    if not files and result.errors:
        sys.exit(1)


@cli.command(context_settings={'ignore_unknown_options': True})
@click.argument('arguments', nargs=-1, type=click.UNPROCESSED)
@handle_error
def run(arguments):
    """
    Run the extractor with the configured options

    Extra arguments (links, flags) are appended after the configured
    options; the extractor's standard output is printed as is.

    Example: ytdl-pipeline run --get-title https://www.youtube.com/watch?v=...
    """
    ytdl = create_ytdl(build_options(()))
    output = ytdl.run(*arguments)
    if output:
        click.echo(output)


@cli.command('clear-cache')
@handle_error
def clear_cache():
    """
    Remove every cached metadata file
    """
    settings = get_settings()
    if not settings.cache.directory:
        click.echo("No cache directory configured")
        return

    cache = MetadataCache(settings.cache.directory, duration=settings.cache.duration)
    removed = cache.clear()
    click.echo(f"Removed {removed} cached file(s) from {cache.directory}")


# Entry point for module execution
if __name__ == '__main__':
    cli()
