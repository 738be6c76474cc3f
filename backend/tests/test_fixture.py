import json

import httpx
import pytest

from superside import fixture as fixture_module
from superside.fixture import build_update, post_fixture
from superside.schemas import StateChangedEvent


FIXTURE = [
    {
        "Event": {
            "Service": {"ID": "1", "Name": "web", "Image": "web:1", "Status": 0},
            "PreviousStatus": 3,
            "Time": "2015-06-09T12:00:00Z",
        },
        "ClusterName": "recorded",
    },
    {
        "Event": {
            "Service": {"ID": "2", "Name": "api", "Image": "api:2", "Status": 2},
            "PreviousStatus": 0,
            "Time": "2015-06-09T12:00:05Z",
        },
        "ClusterName": "recorded",
    },
]


@pytest.fixture()
def fixture_path(tmp_path):
    path = tmp_path / "deployment-sample.json"
    path.write_text(json.dumps(FIXTURE), encoding="utf-8")
    return str(path)


def test_build_update_wraps_event_in_state():
    body = build_update(FIXTURE[0], cluster_name="nitro-dev", hostname="awesome-host")

    assert body["State"] == {"ClusterName": "nitro-dev", "Hostname": "awesome-host"}
    assert body["ChangeEvent"]["Service"]["Name"] == "web"
    assert body["ChangeEvent"]["PreviousStatus"] == 3
    # Must be accepted by /update.
    StateChangedEvent.model_validate(body)


def test_post_fixture_posts_in_order(fixture_path):
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.headers["content-type"] == "application/json"
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"Message": "OK"})

    with httpx.Client(transport=httpx.MockTransport(handler)) as http:
        sent = post_fixture(fixture_path, "http://relay/api/update", cluster_name="qa", client=http)

    assert sent == 2
    assert [b["ChangeEvent"]["Service"]["Name"] for b in bodies] == ["web", "api"]
    assert {b["State"]["ClusterName"] for b in bodies} == {"qa"}


def test_post_fixture_stops_on_rejection(fixture_path):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(422, json={"detail": []})

    with httpx.Client(transport=httpx.MockTransport(handler)) as http:
        with pytest.raises(httpx.HTTPStatusError):
            post_fixture(fixture_path, "http://relay/api/update", client=http)

    assert len(calls) == 1


def test_main_passes_options(monkeypatch, fixture_path):
    seen = {}

    def fake_post(path, url, *, cluster_name, hostname, client=None):
        seen.update(path=path, url=url, cluster_name=cluster_name, hostname=hostname)
        return 2

    monkeypatch.setattr(fixture_module, "post_fixture", fake_post)
    monkeypatch.setattr(fixture_module, "configure_logging", lambda *a, **kw: None)

    assert fixture_module.main(["--fixture", fixture_path, "--cluster", "staging"]) == 0
    assert seen == {
        "path": fixture_path,
        "url": fixture_module.DEFAULT_UPDATE_URL,
        "cluster_name": "staging",
        "hostname": "awesome-host",
    }
