"""Hero data build orchestration"""

import copy
import json
import requests
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Dict, Iterable, List, Optional

from .config import Config
from .parsers import TableRecord, parse_hero_aggregate_html, parse_hero_stats_and_skills
from .scrapers import FetchError, PageFetchError, WikiFetcher, page_url

logger = logging.getLogger(__name__)

# MediaWiki caps the number of titles per query
API_TITLES_PER_QUERY = 50


@dataclass(frozen=True)
class Hero:
    """
    A hero as consumed by the UI layer

    Frozen at the top level only: skills and stats are plain containers, so
    to_dict hands out copies rather than the hero's own.
    """
    short_name: str
    name: str
    move_type: Optional[str]
    weapon_type: Optional[str]
    skills: List[Dict[str, Any]] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'shortName': self.short_name,
            'name': self.name,
            'moveType': self.move_type,
            'weaponType': self.weapon_type,
            'skills': copy.deepcopy(self.skills),
            'stats': copy.deepcopy(self.stats),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Hero':
        return cls(
            short_name=data.get('shortName') or short_name(data['name']),
            name=data['name'],
            move_type=data.get('moveType'),
            weapon_type=data.get('weaponType'),
            skills=data.get('skills', []),
            stats=data.get('stats', {}),
        )

    @property
    def has_stats(self) -> bool:
        return any(self.stats.get(level) for level in ('1', '40'))


def short_name(name: str) -> str:
    """'Lucina: Glorious Archer' -> 'Lucina'"""
    return name.split(':')[0].strip()


def build_hero(page_name: str, summary: Optional[TableRecord], details: Optional[Dict[str, Any]]) -> Hero:
    """
    Combine an aggregate table row and a parsed hero page into a Hero

    Args:
        page_name: Wiki page name of the hero
        summary: Row of the aggregate table, if any
        details: Parsed {skills, stats} of the hero page, possibly empty

    Returns:
        Hero entity
    """
    summary = summary or {}
    details = details or {}
    name = str(summary.get('name') or page_name)
    return Hero(
        short_name=short_name(name),
        name=name,
        move_type=summary.get('moveType'),
        weapon_type=summary.get('weaponType'),
        skills=details.get('skills', []),
        stats=details.get('stats', {}),
    )


def write_heroes(heroes: Dict[str, Hero], path: str):
    """Write the hero lookup table as JSON"""
    data = {name: hero.to_dict() for name, hero in heroes.items()}
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, sort_keys=True, ensure_ascii=False)
        f.write('\n')
    logger.info(f"Wrote {len(data)} heroes to {path}")


def load_heroes(path: str) -> Dict[str, Hero]:
    """Load a hero lookup table written by write_heroes"""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return {name: Hero.from_dict(hero) for name, hero in data.items()}


def _batched(items: List[str], size: int) -> Iterable[List[str]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


class HeroDataBuilder:
    """Builds the hero lookup table from the wiki"""

    def __init__(
        self,
        fetcher: Optional[WikiFetcher] = None,
        output_path: Optional[str] = None,
        assets_dir: Optional[str] = None,
        strict: Optional[bool] = None
    ):
        """
        Initialize the builder

        Args:
            fetcher: Wiki fetcher (a new one is created from Config if omitted)
            output_path: JSON output file (defaults to Config.OUTPUT_PATH)
            assets_dir: Image directory (defaults to Config.ASSETS_DIR)
            strict: Count heroes without stat tables as failures
        """
        self.fetcher = fetcher or WikiFetcher()
        self.output_path = output_path or Config.OUTPUT_PATH
        self.assets_dir = assets_dir or Config.ASSETS_DIR
        self.strict = Config.STRICT_STATS if strict is None else strict
        self.heroes: Dict[str, Hero] = {}
        self.stats = {
            'heroes_total': 0,
            'heroes_built': 0,
            'heroes_partial': 0,  # Built but missing stats or skills
            'heroes_failed': 0,  # Fetch or parse failed
            'images_downloaded': 0,
            'images_failed': 0,
            'errors': 0
        }

    def run(
        self,
        hero_names: Optional[List[str]] = None,
        download_images: bool = False,
        write: bool = True
    ) -> dict:
        """
        Run the build

        Args:
            hero_names: Restrict the build to these hero pages (defaults to every
                hero listed on the aggregate page)
            download_images: Also download hero portraits
            write: Write the JSON output file

        Returns:
            Dictionary with build statistics
        """
        logger.info("Starting hero data build")

        try:
            summaries = self.fetch_hero_summaries()
            names = list(hero_names) if hero_names else list(summaries)

            if not names:
                logger.error("No heroes to build")
                self.stats['errors'] += 1
                return self.stats

            self.stats['heroes_total'] = len(names)
            details = self.fetch_hero_details(names)
            self.heroes = self.combine(names, summaries, details)

            if write:
                write_heroes(self.heroes, self.output_path)

            if download_images:
                self.download_portraits(list(self.heroes))

        except KeyboardInterrupt:
            logger.warning("Build interrupted by user")
        except (FetchError, OSError) as e:
            logger.error(f"Build failed: {e}")
            self.stats['errors'] += 1
        finally:
            self.cleanup()

        self._log_final_stats()
        return self.stats

    def fetch_hero_summaries(self) -> Dict[str, TableRecord]:
        """Fetch the aggregate page and index its rows by hero name"""
        url = page_url(self.fetcher.host, Config.HERO_LIST_PAGE)
        try:
            html = self.fetcher.fetch_page(url)
        except PageFetchError as e:
            logger.error(f"Could not fetch hero list: {e}")
            return {}

        records = parse_hero_aggregate_html(html)
        summaries = {str(record['name']): record for record in records if record.get('name')}
        logger.info(f"Found {len(summaries)} heroes on {Config.HERO_LIST_PAGE}")
        return summaries

    def fetch_hero_details(self, names: List[str]) -> Dict[str, Dict[str, Any]]:
        """Fetch and parse every hero page"""
        parse_fn = partial(parse_hero_stats_and_skills, strict=self.strict)
        parse_fn.__name__ = 'parse_hero_stats_and_skills'
        return self.fetcher.fetch_and_parse_pages(self.fetcher.host, names, parse_fn, empty=dict)

    def combine(
        self,
        names: List[str],
        summaries: Dict[str, TableRecord],
        details: Dict[str, Dict[str, Any]]
    ) -> Dict[str, Hero]:
        """Build Hero entities and update statistics"""
        heroes = {}
        for name in names:
            hero = build_hero(name, summaries.get(name), details.get(name))
            heroes[name] = hero

            if name in self.fetcher.failed_pages:
                self.stats['heroes_failed'] += 1
                if self.strict:
                    self.stats['errors'] += 1
            elif not hero.has_stats or not hero.skills:
                logger.warning(f"{name}: missing {'stats' if not hero.has_stats else 'skills'}")
                self.stats['heroes_partial'] += 1
            else:
                self.stats['heroes_built'] += 1

        return heroes

    def find_portrait_urls(self, names: List[str]) -> Dict[str, str]:
        """Look up portrait image URLs through the MediaWiki API"""
        urls = {}
        for batch in _batched(names, API_TITLES_PER_QUERY):
            titles = '|'.join(f"File:Icon Portrait {short_name(name)}.png" for name in batch)
            try:
                data = self.fetcher.fetch_api_query({
                    'titles': titles,
                    'prop': 'imageinfo',
                    'iiprop': 'url',
                }) or {}
            except (ValueError, requests.RequestException) as e:
                logger.error(f"Image info query failed: {e}")
                self.stats['errors'] += 1
                continue

            for page in data.get('query', {}).get('pages', {}).values():
                info = page.get('imageinfo')
                if info:
                    urls[page['title']] = info[0]['url']
        return urls

    def download_portraits(self, names: List[str]):
        """Download the portrait of every hero into the assets directory"""
        urls = list(self.find_portrait_urls(names).values())
        logger.info(f"Downloading {len(urls)} portraits")

        def download(url: str) -> bool:
            try:
                self.fetcher.fetch_image(url, self.assets_dir)
                return True
            except Exception as e:
                logger.warning(f"Failed to download {url}: {e}")
                return False

        with ThreadPoolExecutor(max_workers=self.fetcher.max_workers) as pool:
            for ok in pool.map(download, urls):
                self.stats['images_downloaded' if ok else 'images_failed'] += 1

    def cleanup(self):
        """Cleanup resources"""
        logger.debug("Cleaning up resources")
        self.fetcher.close()

    def _log_final_stats(self):
        """Log final build statistics"""
        logger.info("=" * 60)
        logger.info("Build completed")
        logger.info("=" * 60)
        logger.info(f"Heroes processed: {self.stats['heroes_total']}")
        logger.info(f"  ✓ Fully built: {self.stats['heroes_built']}")
        logger.info(f"  ⚠ Partial (missing data): {self.stats['heroes_partial']}")
        logger.info(f"  ✗ Failed: {self.stats['heroes_failed']}")
        if self.stats['images_downloaded'] or self.stats['images_failed']:
            logger.info(f"Images downloaded: {self.stats['images_downloaded']}")
            logger.info(f"  Failed: {self.stats['images_failed']}")
        if self.stats['errors'] > 0:
            logger.warning(f"Total errors: {self.stats['errors']}")
        logger.info("=" * 60)
