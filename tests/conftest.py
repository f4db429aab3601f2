import json

import pytest
import requests

from proxies.config import ProxyConfig
from proxies.osrm_proxy import create_app


def make_response(status_code=200, payload=None, text=None):
    resp = requests.Response()
    resp.status_code = status_code
    resp.url = "http://osrm.test/route"
    if text is not None:
        resp._content = text.encode("utf-8")
    else:
        resp._content = json.dumps(payload).encode("utf-8")
    resp.encoding = "utf-8"
    return resp


class FakeBackend:
    """Stands in for requests.get and records every outbound call."""

    def __init__(self):
        self.calls = []
        self.response = make_response(200, {"code": "Ok", "routes": [{}]})
        self.error = None

    def __call__(self, url, headers=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def config():
    return ProxyConfig(osrm_url="http://osrm.test")


@pytest.fixture
def app(config):
    app = create_app(config)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def backend(monkeypatch):
    fake = FakeBackend()
    monkeypatch.setattr("proxies.osrm_proxy.requests.get", fake)
    return fake
