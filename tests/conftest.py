import io
from types import SimpleNamespace

import pytest
import requests
from PIL import Image


def png_bytes(size=(10, 10), color=(255, 0, 0, 255)):
    buf = io.BytesIO()
    Image.new("RGBA", size, color).save(buf, "PNG")
    return buf.getvalue()


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, content=b"", reason="OK"):
        self.status_code = status_code
        self._json = json_data
        self.content = content
        self.reason = reason

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if self._json is None:
            raise ValueError("No JSON object could be decoded")
        return self._json

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} {self.reason}")


@pytest.fixture
def fake_get(monkeypatch):
    """
    Replace requests.get with a URL router. Register responses with
    routes[url] = FakeResponse(...) or an exception instance; every call is
    recorded in calls.
    """
    state = SimpleNamespace(routes={}, calls=[])

    def _get(url, **kwargs):
        state.calls.append(SimpleNamespace(url=url, **kwargs))
        page = (kwargs.get("params") or {}).get("page")
        key = (url, page) if (url, page) in state.routes else url
        if key not in state.routes:
            raise requests.ConnectionError(f"no route for {url}")
        result = state.routes[key]
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(requests, "get", _get)
    return state


@pytest.fixture
def make_png():
    return png_bytes
