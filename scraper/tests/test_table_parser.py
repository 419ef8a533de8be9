"""Tests for the generic wiki table parser"""

from feh_stats.parsers.table_parser import make_soup, parse_table, parse_tables

from conftest import LEVEL_1_TABLE, PASSIVE_TABLE, SKILLS_TABLE


# ---------------------------------------------------------------------------
# parse_table
# ---------------------------------------------------------------------------


class TestParseTable:
    def test_one_record_per_row(self) -> None:
        records = parse_table(LEVEL_1_TABLE)

        assert len(records) == 2
        assert all(set(record) == {'rarity', 'hp', 'atk', 'spd', 'def', 'res'} for record in records)

    def test_values_are_parsed(self) -> None:
        records = parse_table(LEVEL_1_TABLE)

        assert records[0]['rarity'] == 3
        assert records[0]['hp'] == '16/17/18'
        assert records[1]['hp'] == 34

    def test_accepts_tag(self) -> None:
        table = make_soup(LEVEL_1_TABLE).find('table')
        assert len(parse_table(table)) == 2

    def test_header_in_thead_without_row(self) -> None:
        html = (
            '<table><thead><th>Name</th><th>Rarity</th></thead>'
            '<tbody><tr><td>Anna</td><td>5</td></tr><tr><td>Alfonse</td><td>4</td></tr></tbody></table>'
        )
        records = parse_table(html)

        assert records == [{'name': 'Anna', 'rarity': 5}, {'name': 'Alfonse', 'rarity': 4}]

    def test_icon_column_dropped(self) -> None:
        records = parse_table(SKILLS_TABLE)

        assert '' not in records[0]
        assert set(records[0]) == {'name', 'might', 'effect', 'default', 'rarity'}

    def test_header_synonyms(self) -> None:
        records = parse_table(PASSIVE_TABLE)

        assert records == [{
            'name': 'Vantage 3',
            'effect': 'Counterattack first',
            'default': 'No',
            'rarity': 5,
        }]

    def test_checkmark_and_cross_images(self) -> None:
        records = parse_table(SKILLS_TABLE)

        assert records[0]['default'] == 'Yes'
        assert records[1]['default'] == 'No'

    def test_nbsp_removed(self) -> None:
        records = parse_table(SKILLS_TABLE)
        assert records[0]['effect'] == ''

    def test_beast_label_corrected(self) -> None:
        records = parse_table(SKILLS_TABLE)
        assert records[1]['effect'] == 'Grants the unit a Breath effect'

    def test_markup_stripped(self) -> None:
        html = (
            '<table><tr><th><span>Name</span></th></tr>'
            '<tr><td><b><a href="/x">Fire Breath+</a></b></td></tr></table>'
        )
        assert parse_table(html) == [{'name': 'Fire Breath+'}]

    def test_short_row_keeps_present_fields(self) -> None:
        html = '<table><tr><th>Name</th><th>Might</th></tr><tr><td>Iron Axe</td></tr></table>'
        assert parse_table(html) == [{'name': 'Iron Axe'}]

    def test_no_table(self) -> None:
        assert parse_table('<div>No tables here</div>') == []

    def test_header_only(self) -> None:
        assert parse_table('<table><tr><th>Name</th></tr></table>') == []

    def test_cell_rules(self) -> None:
        import re

        html = '<table><tr><th>HP</th></tr><tr><td>x12</td></tr></table>'
        assert parse_table(html, cell_rules=[(re.compile('x'), '')]) == [{'hp': 12}]

    def test_nested_table_rows_not_counted(self) -> None:
        html = (
            '<table><tr><th>Name</th><th>Notes</th></tr>'
            '<tr><td>Anna</td><td><table><tr><td>inner</td></tr></table></td></tr></table>'
        )
        records = parse_table(html)

        assert len(records) == 1
        assert records[0]['name'] == 'Anna'


# ---------------------------------------------------------------------------
# parse_tables
# ---------------------------------------------------------------------------


class TestParseTables:
    def test_flattens_matching_tables(self) -> None:
        html = '<html><body>' + LEVEL_1_TABLE + SKILLS_TABLE + PASSIVE_TABLE + '</body></html>'
        records = parse_tables('skills-table')(html)

        assert [record['name'] for record in records] == ['Silver Axe', 'Nóatún', 'Vantage 3']

    def test_no_matching_tables(self) -> None:
        assert parse_tables('skills-table')('<html><body>' + LEVEL_1_TABLE + '</body></html>') == []

    def test_class_fragment(self) -> None:
        assert len(parse_tables('skills')(SKILLS_TABLE)) == 2
