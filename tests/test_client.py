import random

import pytest
import requests
from memory_match.client import ClientError, MemoryMatchClient, render_grid
from memory_match.config import Config
from memory_match.engine import MATCH_DELAY, MemoryMatchEngine
from memory_match.progress import ProgressStore
from memory_match.scheduler import ManualScheduler
from memory_match.server import create_app


class FlaskSession:
    """Stands in for requests.Session, routing calls to a Flask test client."""

    def __init__(self, test_client, base_url):
        self.test_client = test_client
        self.base_url = base_url
        self.calls = []

    def _path(self, url):
        assert url.startswith(self.base_url)
        return url[len(self.base_url):]

    def get(self, url, timeout=None):
        self.calls.append(("GET", url, timeout))
        return _Response(self.test_client.get(self._path(url)))

    def post(self, url, json=None, timeout=None):
        self.calls.append(("POST", url, timeout))
        return _Response(self.test_client.post(self._path(url), json=json))


class _Response:
    def __init__(self, flask_response):
        self.status_code = flask_response.status_code
        self._data = flask_response.get_json()

    def json(self):
        if self._data is None:
            raise ValueError("no JSON")
        return self._data


class BrokenSession:
    def get(self, url, timeout=None):
        raise requests.ConnectionError("connection refused")

    post = get


@pytest.fixture
def clock():
    return ManualScheduler()


@pytest.fixture
def engine(clock):
    return MemoryMatchEngine(progress=ProgressStore(), scheduler=clock, rng=random.Random(11))


@pytest.fixture
def api(engine, tmp_path):
    app = create_app(Config(progress_path=str(tmp_path / "p.json")), engine=engine)
    session = FlaskSession(app.test_client(), "http://game.local")
    return MemoryMatchClient("http://game.local/", session=session, timeout=3.0)


def test_client_plays_a_game(api, engine, clock):
    assert api.health()["phase"] == "picking"
    state = api.new_game("easy")
    assert len(state["cards"]) == 8

    positions = {}
    for i, card in enumerate(engine.state.board.cards()):
        positions.setdefault(card.content, []).append(i)
    for a, b in positions.values():
        assert api.flip(a)["flipped"]
        assert api.flip(b)["flipped"]
        clock.advance(MATCH_DELAY)

    final = api.state()
    assert final["complete"]
    assert api.progress()["total_stars"] == 3
    assert api.reset_progress()["total_stars"] == 0
    assert all(call[2] == 3.0 for call in api.session.calls)


def test_client_navigation(api):
    assert [d["name"] for d in api.difficulties()] == ["easy", "medium", "hard"]
    api.new_game("hard")
    assert api.restart()["difficulty"] == "hard"
    assert api.back()["left_game"] is True
    assert api.teardown()["phase"] == "picking"


def test_client_raises_on_error_response(api):
    with pytest.raises(ClientError) as exc:
        api.new_game("impossible")
    assert exc.value.status_code == 400

    with pytest.raises(ClientError):
        api.restart()


def test_client_wraps_connection_errors():
    client = MemoryMatchClient("http://nowhere", session=BrokenSession())
    with pytest.raises(ClientError):
        client.state()


def test_render_grid(api):
    api.new_game("easy")
    api.flip(0)
    text = render_grid(api.state())
    lines = text.splitlines()
    assert len(lines) == 3
    assert lines[0].startswith(" 0:")
    assert "?" in text
    assert lines[-1].startswith("phase=one_flipped moves=0 pairs=0/4")
