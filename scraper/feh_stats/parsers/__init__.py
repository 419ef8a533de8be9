"""HTML table parsing module"""

from .table_parser import parse_table, parse_tables, TableRecord
from .hero_parser import (
    parse_hero_skills,
    parse_hero_stats,
    parse_hero_stats_and_skills,
    parse_hero_aggregate_html,
    process_stat_table,
    ParseError,
    MissingStatsError,
)
from .util import camel_case, maybe_to_number, normalize_field_name, UNKNOWN_VALUE

__all__ = [
    "parse_table",
    "parse_tables",
    "TableRecord",
    "parse_hero_skills",
    "parse_hero_stats",
    "parse_hero_stats_and_skills",
    "parse_hero_aggregate_html",
    "process_stat_table",
    "ParseError",
    "MissingStatsError",
    "camel_case",
    "maybe_to_number",
    "normalize_field_name",
    "UNKNOWN_VALUE",
]
