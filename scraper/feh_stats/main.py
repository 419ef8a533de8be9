"""Command-line interface for the hero stats scraper"""

import click
import json
import logging
import colorlog
import sys
from . import __version__
from .builder import HeroDataBuilder, load_heroes
from .config import Config


def setup_logging(verbose: bool = False):
    """Setup colored logging"""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Create colored formatter
    formatter = colorlog.ColoredFormatter(
        '%(log_color)s%(levelname)-8s%(reset)s %(blue)s%(message)s',
        datefmt=None,
        reset=True,
        log_colors={
            'DEBUG': 'cyan',
            'INFO': 'green',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'red,bg_white',
        }
    )

    # Log to stderr so JSON on stdout stays clean
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    # Setup root logger, dropping the handler of a previous invocation
    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if isinstance(existing.formatter, colorlog.ColoredFormatter):
            root_logger.removeHandler(existing)
    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)

    # urllib3 is chatty at debug level
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def _make_fetcher(workers=None):
    from .scrapers import WikiFetcher

    params = Config.get_fetch_params()
    if workers:
        params['max_workers'] = workers
    return WikiFetcher(**params)


@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose logging')
def cli(verbose):
    """Fire Emblem Heroes Stats - Wiki Scraper

    Scrapes hero stats and skills from the wiki and writes a hero lookup table.
    """
    setup_logging(verbose)


@cli.command()
@click.option(
    '--hero', '-n', 'heroes',
    multiple=True,
    help='Only build these hero pages (repeatable)'
)
@click.option(
    '--output', '-o',
    type=click.Path(dir_okay=False),
    help=f'Output JSON file (defaults to {Config.OUTPUT_PATH})'
)
@click.option(
    '--images',
    is_flag=True,
    help='Also download hero portraits into the assets directory'
)
@click.option(
    '--workers', '-w',
    type=int,
    help='Maximum concurrent page fetches'
)
@click.option(
    '--strict',
    is_flag=True,
    help='Fail when a hero page has no stat tables'
)
def build(heroes, output, images, workers, strict):
    """Build the hero lookup table"""
    builder = HeroDataBuilder(
        fetcher=_make_fetcher(workers),
        output_path=output,
        strict=strict or None
    )

    try:
        stats = builder.run(
            hero_names=list(heroes) or None,
            download_images=images
        )

        # Exit with error code if there were errors
        if stats['errors'] > 0:
            sys.exit(1)

    except Exception as e:
        logging.error(f"Build failed: {e}")
        sys.exit(1)


@cli.command('fetch-hero')
@click.argument('name')
def fetch_hero(name):
    """Fetch a single hero page and print its parsed stats and skills"""
    from .parsers import parse_hero_stats_and_skills
    from .scrapers import PageFetchError, page_url

    fetcher = _make_fetcher()

    try:
        html = fetcher.fetch_page(page_url(fetcher.host, name))
        data = parse_hero_stats_and_skills(html)
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))

    except PageFetchError as e:
        logging.error(f"Failed to fetch {name}: {e}")
        sys.exit(1)
    finally:
        fetcher.close()


@cli.command()
@click.argument('html_file', type=click.File('r', encoding='utf-8'))
@click.option('--aggregate', is_flag=True, help='Parse as the aggregate stats page')
def parse(html_file, aggregate):
    """Parse a saved wiki page without fetching"""
    from .parsers import parse_hero_aggregate_html, parse_hero_stats_and_skills

    try:
        html = html_file.read().replace('\n', '').replace('\r', '')
        if aggregate:
            data = parse_hero_aggregate_html(html)
        else:
            data = parse_hero_stats_and_skills(html)
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))

    except Exception as e:
        logging.error(f"Failed to parse {html_file.name}: {e}")
        sys.exit(1)


@cli.command()
@click.argument('query')
def ask(query):
    """Run a Semantic MediaWiki Ask query and print the JSON result"""
    fetcher = _make_fetcher()

    try:
        click.echo(json.dumps(fetcher.fetch_ask_api_query(query), indent=2, ensure_ascii=False))
    except Exception as e:
        logging.error(f"Ask query failed: {e}")
        sys.exit(1)
    finally:
        fetcher.close()


@cli.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
def show(path):
    """Summarize a built hero lookup table"""
    heroes = load_heroes(path)

    missing = [name for name, hero in heroes.items() if not hero.has_stats]

    click.echo("\n" + "=" * 60)
    click.echo(f"Heroes: {len(heroes)}")
    click.echo(f"  With stats: {len(heroes) - len(missing)}")
    click.echo(f"  Missing stats: {len(missing)}")
    click.echo("=" * 60)

    for name in sorted(heroes):
        hero = heroes[name]
        flag = '✗' if name in missing else '✓'
        click.echo(
            f"  {flag} {hero.name:<30} {hero.weapon_type or '?':<16} "
            f"{hero.move_type or '?':<10} {len(hero.skills)} skills"
        )


@cli.command()
def version():
    """Show version information"""
    click.echo(f"feh-stats {__version__}")
    click.echo(f"Wiki: {Config.WIKI_HOST}")


if __name__ == '__main__':
    cli()
