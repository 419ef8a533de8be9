"""Parsers for hero pages and the aggregate stats page"""

import logging
import re
from typing import Any, Dict, List, Union

from bs4 import Tag

from .table_parser import TableRecord, find_tables, image_markup, make_soup, parse_table, parse_tables
from .util import UNKNOWN_PATTERN, UNKNOWN_VALUE, Scalar, maybe_to_number

logger = logging.getLogger(__name__)

SKILL_FIELDS = ('name', 'default', 'rarity')
STAT_LEVELS = ('1', '40')

# Tables on a hero page that are never stat tables
EXCLUDED_TABLE_MARKERS = ('ibox', 'skills-table')

# Aggregate page headers that differ from the hero pages
AGGREGATE_HEADER_RENAMES = {
    'Character Name': 'Name',
    'Movement Type': 'Move Type',
}

# Class and move icons on the aggregate page, e.g. "Icon Class Red Sword.png"
AGGREGATE_ICON_PATTERN = re.compile(r'Icon[ _](?:Class|Move)[ _](.+?)\.png')

StatValue = Union[Scalar, List[Scalar]]
HeroStatTable = Dict[str, Dict[str, Dict[str, StatValue]]]


class ParseError(Exception):
    """Raised when a page does not have the expected structure"""
    pass


class MissingStatsError(ParseError):
    """Raised in strict mode when a hero page lacks its stat tables"""
    pass


parse_skill_tables = parse_tables('skills-table')


def parse_hero_skills(html: Union[str, Tag]) -> List[Dict[str, Any]]:
    """Parse all skill tables on a hero page into name/default/rarity records"""
    return [
        {field: record.get(field) for field in SKILL_FIELDS}
        for record in parse_skill_tables(html)
    ]


def split_variants(value: Scalar) -> List[Scalar]:
    """'10/12/14' -> [10, 12, 14]; 42 -> [42]"""
    return [maybe_to_number(part) for part in str(value).split('/')]


def process_stat_table(records: List[TableRecord]) -> Dict[str, Dict[str, List[Scalar]]]:
    """
    Restructure a parsed stat table to be keyed by rarity with stat variants

    [{rarity, stat: "lo/mid/high"}] -> {rarity: {stat: [lo, mid, high]}}
    """
    table = {}
    for record in records:
        if 'rarity' not in record:
            logger.debug(f"Skipping stat row without rarity: {record}")
            continue
        stats = {
            stat: split_variants(value)
            for stat, value in record.items()
            if stat != 'rarity'
        }
        table[str(record['rarity'])] = stats
    return table


def collapse_level_1(variants: List[Scalar]) -> Scalar:
    """Level 1 tables only carry one meaningful value per stat"""
    return variants[1] if len(variants) == 3 else variants[0]


def collapse_level_40(variants: List[Scalar]) -> StatValue:
    """Keep the low/neutral/high growth variants unless there is only one"""
    return variants[0] if len(variants) == 1 else variants


def _is_excluded(table: Tag) -> bool:
    markers = ' '.join(table.get('class', [])) + ' ' + table.get('id', '')
    return any(marker in markers for marker in EXCLUDED_TABLE_MARKERS)


def _is_stat_table(table: Tag) -> bool:
    # Tables nested in an infobox or skills table belong to it
    if _is_excluded(table) or any(_is_excluded(parent) for parent in table.find_parents('table')):
        return False
    return any('Rarity' in field_text for field_text in _header_texts(table))


def _header_texts(table: Tag) -> List[str]:
    return [th.get_text() for th in table.find_all('th') if th.find_parent('table') is table]


def parse_hero_stats(html: Union[str, Tag], strict: bool = False) -> HeroStatTable:
    """
    Parse the level 1 and level 40 stat tables of a hero page

    Args:
        html: Hero page HTML
        strict: Raise MissingStatsError instead of returning partial data

    Returns:
        {'1': {rarity: {stat: number}}, '40': {rarity: {stat: [lo, mid, high]}}}
    """
    soup = make_soup(html) if isinstance(html, str) else html
    stat_tables = [table for table in find_tables(soup) if _is_stat_table(table)]

    if len(stat_tables) < 2:
        message = f"Expected 2 stat tables, found {len(stat_tables)}"
        if strict:
            raise MissingStatsError(message)
        logger.warning(message)

    # Standardize unknown values before numeric parsing
    unknown_rule = [(UNKNOWN_PATTERN, UNKNOWN_VALUE)]
    processed = [
        process_stat_table(parse_table(table, cell_rules=unknown_rule))
        for table in stat_tables[:2]
    ]

    stats: HeroStatTable = {}
    collapse = {'1': collapse_level_1, '40': collapse_level_40}
    for level, table in zip(STAT_LEVELS, processed):
        stats[level] = {
            rarity: {stat: collapse[level](variants) for stat, variants in rarity_stats.items()}
            for rarity, rarity_stats in table.items()
        }
    for level in STAT_LEVELS:
        stats.setdefault(level, {})
    return stats


def parse_hero_stats_and_skills(html: str, strict: bool = False) -> Dict[str, Any]:
    """Parse a hero page into its skills and stats"""
    soup = make_soup(html)
    skills = parse_hero_skills(soup)
    stats = parse_hero_stats(soup, strict=strict)
    return {'skills': skills, 'stats': stats}


def parse_hero_aggregate_html(html: str) -> List[TableRecord]:
    """
    Parse the only table of the aggregate page listing all heroes

    Move and weapon type icons are read as their names and headers are
    renamed to match the hero pages.
    """
    # Lon'qu has an HTML entity in his name
    html = html.replace('&#39;', "'")
    tables = find_tables(html)
    if not tables:
        logger.warning("No table found on aggregate page")
        return []

    table = tables[0]
    for img in table.find_all('img'):
        match = AGGREGATE_ICON_PATTERN.search(image_markup(img))
        if match:
            img.replace_with(match.group(1).replace('_', ' '))

    return parse_table(table, header_renames=AGGREGATE_HEADER_RENAMES)
