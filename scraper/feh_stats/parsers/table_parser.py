"""Generic HTML table parser for wiki tables"""

import logging
import re
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from bs4 import BeautifulSoup, Tag

from .util import Scalar, maybe_to_number, normalize_field_name

logger = logging.getLogger(__name__)

TableRecord = Dict[str, Scalar]
CellRule = Tuple[re.Pattern, str]

# Images whose markup contains the key are read as the value
IMAGE_SUBSTITUTIONS: Dict[str, str] = {
    'Green check': 'Yes',
    'Dark Red x': 'No',
}

# Text rules applied to every cell, in order
CELL_RULES: List[CellRule] = [
    (re.compile('\xa0'), ''),  # &#160;
    (re.compile(r'Beast'), 'Breath'),  # Images say Beast but the weapon is a Breath
]


def make_soup(html: str) -> BeautifulSoup:
    """Parse an HTML string with the lxml backend"""
    return BeautifulSoup(html, 'lxml')


def as_table(table: Union[str, Tag]) -> Optional[Tag]:
    """Return the <table> element for an HTML string or tag"""
    if isinstance(table, Tag) and table.name == 'table':
        return table
    soup = make_soup(table) if isinstance(table, str) else table
    return soup.find('table')


def image_markup(img: Tag) -> str:
    """Attribute text of an image, used to recognise icons"""
    return ' '.join(
        ' '.join(value) if isinstance(value, list) else str(value)
        for value in img.attrs.values()
    )


def replace_images(cell: Tag, substitutions: Dict[str, str]):
    """Replace icon images inside a cell with their text value, in place"""
    for img in cell.find_all('img'):
        markup = image_markup(img)
        for key, value in substitutions.items():
            if key in markup:
                img.replace_with(value)
                break


def cell_text(cell: Tag, rules: Iterable[CellRule] = ()) -> str:
    """Text of a cell with all markup removed and cell rules applied"""
    text = cell.get_text()
    for pattern, replacement in list(CELL_RULES) + list(rules):
        text = pattern.sub(replacement, text)
    return text.strip()


def _is_header_row(row: Tag) -> bool:
    return row.find('th', recursive=False) is not None


def _own_rows(table: Tag) -> List[Tag]:
    """Rows of this table, excluding rows of nested tables"""
    return [row for row in table.find_all('tr') if row.find_parent('table') is table]


def header_fields(table: Tag, renames: Optional[Dict[str, str]] = None) -> List[str]:
    """
    Field names from the header cells of a table

    Args:
        table: Table element
        renames: Optional header text renames applied before normalization

    Returns:
        Normalized field names, one per header cell
    """
    header_row = next((row for row in _own_rows(table) if _is_header_row(row)), None)
    if header_row is not None:
        cells = header_row.find_all('th', recursive=False)
    else:
        # Some tables put loose <th> cells in <thead> without a row
        cells = [th for th in table.find_all('th') if th.find_parent('table') is table]

    fields = []
    for th in cells:
        text = th.get_text().strip()
        for old, new in (renames or {}).items():
            text = text.replace(old, new)
        fields.append(normalize_field_name(text))
    return fields


def parse_table(
    table: Union[str, Tag],
    cell_rules: Iterable[CellRule] = (),
    header_renames: Optional[Dict[str, str]] = None
) -> List[TableRecord]:
    """
    Parse an HTML table into a list of records.

    The keys of each record come from the header cells and the values from
    the cells of the row. A column with an empty header (icon column) is
    dropped.

    Args:
        table: HTML string or table element
        cell_rules: Extra (pattern, replacement) rules for cell text
        header_renames: Header text renames applied before normalization

    Returns:
        One record per data row
    """
    element = as_table(table)
    if element is None:
        logger.debug("No table found in markup")
        return []

    fields = header_fields(element, header_renames)
    rules = list(cell_rules)

    rows = _own_rows(element)
    # Some tables wrap the header in <tr> tags and others do not
    if rows and _is_header_row(rows[0]):
        rows = rows[1:]

    records = []
    for row in rows:
        cells = row.find_all('td', recursive=False)
        if not cells:
            continue

        values = []
        for cell in cells:
            replace_images(cell, IMAGE_SUBSTITUTIONS)
            values.append(maybe_to_number(cell_text(cell, rules)))

        record = dict(zip(fields, values))
        record.pop('', None)
        records.append(record)

    return records


def _has_class(table: Tag, table_class: str) -> bool:
    return table_class in ' '.join(table.get('class', []))


def find_tables(html: Union[str, Tag]) -> List[Tag]:
    """All tables on a page, outermost first"""
    soup = make_soup(html) if isinstance(html, str) else html
    return soup.find_all('table')


def parse_tables(table_class: str) -> Callable[[Union[str, Tag]], List[TableRecord]]:
    """
    Build a parser for every table with a given class on a page

    Args:
        table_class: Class name fragment to match, e.g. 'skills-table'

    Returns:
        Function taking page HTML and returning the flattened records
    """
    def parse(html: Union[str, Tag]) -> List[TableRecord]:
        records = []
        for table in find_tables(html):
            if _has_class(table, table_class):
                records.extend(parse_table(table))
        return records

    parse.__name__ = f"parse_tables_{table_class.replace('-', '_')}"
    return parse
