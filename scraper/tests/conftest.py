"""
Pytest configuration and shared fixtures.

HTML fixtures mimic the markup of the wiki hero pages and the aggregate
stats page, including icon images and placeholder values.
"""

from unittest.mock import MagicMock

import pytest
import requests

from feh_stats.scrapers import WikiFetcher

WIKI_HOST = "https://wiki.test"
API_URL = "https://wiki.test/api.php"

INFOBOX = (
    '<table class="wikitable hero-ibox">'
    '<tr><th>Rarity</th><td>3-5</td></tr>'
    '<tr><th>Weapon</th><td>Axe</td></tr>'
    '</table>'
)

LEVEL_1_TABLE = (
    '<table class="wikitable default">'
    '<tr><th>Rarity</th><th>HP</th><th>ATK</th><th>SPD</th><th>DEF</th><th>RES</th></tr>'
    '<tr><td>3</td><td>16/17/18</td><td>6/7/8</td><td>4/5/6</td><td>4/5/6</td><td>3/4/5</td></tr>'
    '<tr><td>5</td><td>34</td><td>7/8/9</td><td>5/6/7</td><td>5/6/7</td><td>4/5/6</td></tr>'
    '</table>'
)

LEVEL_40_TABLE = (
    '<table class="wikitable default">'
    '<tr><th>Rarity</th><th>HP</th><th>ATK</th><th>SPD</th><th>DEF</th><th>RES</th></tr>'
    '<tr><td>3</td><td>35/38/41</td><td>??</td><td>25/28/31</td><td>20/23/26</td><td>-</td></tr>'
    '<tr><td>5</td><td>40/45/50</td><td>41/45/48</td><td>35/38/41</td><td>26/29/33</td><td>19/22/26</td></tr>'
    '</table>'
)

SKILLS_TABLE = (
    '<table class="wikitable skills-table">'
    '<tr><th></th><th>Name</th><th>Might</th><th>Effects</th><th>Default</th><th>Unlock</th></tr>'
    '<tr><td><img alt="Icon Skill Weapon.png" src="/img/Icon_Skill_Weapon.png"></td>'
    '<td><a href="/Silver_Axe">Silver Axe</a></td><td>11</td><td>&#160;</td>'
    '<td><img alt="Green check.png" src="/img/Green_check.png" width="16"></td><td>3</td></tr>'
    '<tr><td><img alt="Icon Skill Weapon.png" src="/img/Icon_Skill_Weapon.png"></td>'
    '<td><a href="/Nóatún">Nóatún</a></td><td>16</td><td>Grants the unit a Beast effect</td>'
    '<td><img alt="Dark Red x.png" src="/img/Dark_Red_x.png" width="16"></td><td>5</td></tr>'
    '</table>'
)

PASSIVE_TABLE = (
    '<table class="wikitable skills-table">'
    '<tr><th></th><th>Name</th><th>Special Effects</th><th>Default</th><th>Unlock</th></tr>'
    '<tr><td><img alt="Passive Icon B.png"></td><td>Vantage 3</td><td>Counterattack first</td>'
    '<td><img alt="Dark Red x.png"></td><td>5</td></tr>'
    '</table>'
)

HERO_PAGE = (
    '<html><body>'
    '<h1>Anna: Commander</h1>'
    + INFOBOX
    + '<h2>Level 1 Stats</h2>' + LEVEL_1_TABLE
    + '<h2>Level 40 Stats</h2>' + LEVEL_40_TABLE
    + '<h2>Skills</h2>' + SKILLS_TABLE + PASSIVE_TABLE
    + '</body></html>'
)

AGGREGATE_PAGE = (
    '<html><body>'
    '<table class="wikitable sortable">'
    '<tr><th></th><th>Character Name</th><th>Weapon Type</th><th>Movement Type</th>'
    '<th>HP</th><th>ATK</th></tr>'
    '<tr><td><a href="/Anna"><img alt="Icon Portrait Anna.png"></a></td>'
    '<td><a href="/Anna">Anna</a></td>'
    '<td><a href="/Axe"><img alt="Icon Class Green Axe.png" src="/img/Icon_Class_Green_Axe.png"></a></td>'
    '<td><a href="/Infantry"><img alt="Icon Move Infantry.png" src="/img/Icon_Move_Infantry.png"></a></td>'
    '<td>41</td><td>45</td></tr>'
    '<tr><td><a href="/Lon&#39;qu"><img alt="Icon Portrait Lon&#39;qu.png"></a></td>'
    '<td><a href="/Lon&#39;qu">Lon&#39;qu</a></td>'
    '<td><a href="/Sword"><img src="/img/Icon_Class_Red_Sword.png"></a></td>'
    '<td><a href="/Infantry"><img src="/img/Icon_Move_Infantry.png"></a></td>'
    '<td>40</td><td>44</td></tr>'
    '</table>'
    '<table class="wikitable"><tr><th>Legend</th></tr><tr><td>unused</td></tr></table>'
    '</body></html>'
)


def make_response(status_code=200, text='', json_data=None, chunks=None):
    """Build a stand-in for requests.Response"""
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.text = text
    response.json.return_value = json_data
    response.iter_content.return_value = chunks or []
    return response


def make_session(routes):
    """
    Session whose get() answers by URL

    Args:
        routes: Dictionary from URL to a response or list of responses (served
            in order, the last one repeating)
    """
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    served = {}

    def get(url, **kwargs):
        if url not in routes:
            return make_response(404)
        answer = routes[url]
        if isinstance(answer, list):
            index = served.get(url, 0)
            served[url] = index + 1
            return answer[min(index, len(answer) - 1)]
        return answer

    session.get.side_effect = get
    return session


@pytest.fixture
def hero_page_html():
    return HERO_PAGE


@pytest.fixture
def aggregate_page_html():
    return AGGREGATE_PAGE


@pytest.fixture
def fetcher_factory():
    """Create a WikiFetcher over a routed fake session, without retry delays"""
    def factory(routes, **kwargs):
        params = {
            'host': WIKI_HOST,
            'api_url': API_URL,
            'max_workers': 4,
            'max_retries': 3,
            'retry_delay': 0,
            'timeout': 5,
        }
        params.update(kwargs)
        return WikiFetcher(session=make_session(routes), **params)

    return factory


@pytest.fixture
def response_factory():
    return make_response
