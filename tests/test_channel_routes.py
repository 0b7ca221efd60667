"""Integration tests for the /channels and /events API endpoints."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from pacer.api.dependencies import set_channel_service
from pacer.application.channel_service import ChannelService
from pacer.infrastructure.event_log import EventLog
from pacer.infrastructure.scheduler import VirtualScheduler


@pytest.fixture()
def service(scheduler: VirtualScheduler) -> ChannelService:
    """Create and inject a ChannelService driven by a virtual clock."""
    service = ChannelService(scheduler=scheduler, event_log=EventLog())
    set_channel_service(service)
    yield service
    set_channel_service(None)


def _put(client: TestClient, name: str = "search", **body) -> dict:
    resp = client.put(f"/channels/{name}", json=body)
    assert resp.status_code == 200
    return resp.json()


class TestPutChannel:
    def test_put_should_register_channel(
        self, client: TestClient, service: ChannelService
    ) -> None:
        body = _put(client, wait_ms=250, leading=True, max_wait_ms=1000)

        assert body["name"] == "search"
        assert body["wait_ms"] == 250
        assert body["leading"] is True
        assert body["trailing"] is True
        assert body["max_wait_ms"] == 1000
        assert body["pending"] is False
        assert body["executions"] == 0

    def test_put_without_wait_should_use_env_default(
        self,
        client: TestClient,
        service: ChannelService,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("PACER_DEFAULT_WAIT_MS", "750")

        body = _put(client)

        assert body["wait_ms"] == 750

    def test_put_should_reject_negative_wait(
        self, client: TestClient, service: ChannelService
    ) -> None:
        resp = client.put("/channels/search", json={"wait_ms": -5})

        assert resp.status_code == 422

    def test_put_should_reject_invalid_name(
        self, client: TestClient, service: ChannelService
    ) -> None:
        resp = client.put("/channels/bad name!", json={"wait_ms": 10})

        assert resp.status_code == 422


class TestGetAndDeleteChannel:
    def test_list_should_return_all_channels(
        self, client: TestClient, service: ChannelService
    ) -> None:
        _put(client, "sync", wait_ms=10)
        _put(client, "autosave", wait_ms=10)

        resp = client.get("/channels")

        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 2
        assert [c["name"] for c in body["channels"]] == ["autosave", "sync"]

    def test_get_unknown_channel_should_return_404(
        self, client: TestClient, service: ChannelService
    ) -> None:
        resp = client.get("/channels/missing")

        assert resp.status_code == 404
        assert resp.json()["detail"]["error_code"] == "CHANNEL_NOT_FOUND"

    def test_delete_should_remove_channel(
        self, client: TestClient, service: ChannelService
    ) -> None:
        _put(client, wait_ms=10)

        assert client.delete("/channels/search").status_code == 204
        assert client.get("/channels/search").status_code == 404
        assert client.delete("/channels/search").status_code == 404


class TestInvokeFlushCancel:
    def test_invoke_should_report_pending_trailing_execution(
        self, client: TestClient, service: ChannelService
    ) -> None:
        _put(client, wait_ms=100)

        resp = client.post("/channels/search/invoke", json={"payload": {"q": "ac"}})

        assert resp.status_code == 200
        body = resp.json()
        assert body["executed"] is False
        assert body["execution"] is None
        assert body["pending"] is True
        assert client.get("/channels/search").json()["pending"] is True

    def test_invoke_on_leading_channel_should_return_execution(
        self, client: TestClient, service: ChannelService
    ) -> None:
        _put(client, wait_ms=100, leading=True)

        body = client.post(
            "/channels/search/invoke", json={"payload": {"q": "acme"}}
        ).json()

        assert body["executed"] is True
        assert body["execution"]["sequence"] == 1
        assert body["execution"]["payload"] == {"q": "acme"}

    def test_flush_should_execute_latest_payload(
        self, client: TestClient, service: ChannelService
    ) -> None:
        _put(client, wait_ms=100)
        client.post("/channels/search/invoke", json={"payload": "first"})
        client.post("/channels/search/invoke", json={"payload": "last"})

        body = client.post("/channels/search/flush").json()

        assert body["executed"] is True
        assert body["execution"]["payload"] == "last"
        assert body["pending"] is False

        again = client.post("/channels/search/flush").json()
        assert again["executed"] is False

    def test_cancel_should_clear_pending_state(
        self,
        client: TestClient,
        service: ChannelService,
        scheduler: VirtualScheduler,
    ) -> None:
        _put(client, wait_ms=100)
        client.post("/channels/search/invoke", json={"payload": "dropped"})

        body = client.post("/channels/search/cancel").json()
        scheduler.run_all()

        assert body["pending"] is False
        assert client.get("/events").json()["total"] == 0

    @pytest.mark.parametrize("action", ["invoke", "flush", "cancel"])
    def test_actions_on_unknown_channel_should_return_404(
        self, client: TestClient, service: ChannelService, action: str
    ) -> None:
        resp = client.post(f"/channels/missing/{action}", json={})

        assert resp.status_code == 404


class TestGetEvents:
    def test_events_should_return_trailing_executions_newest_first(
        self,
        client: TestClient,
        service: ChannelService,
        scheduler: VirtualScheduler,
    ) -> None:
        _put(client, wait_ms=100)
        for payload in ("one", "two"):
            client.post("/channels/search/invoke", json={"payload": payload})
            scheduler.run_all()

        body = client.get("/events").json()

        assert body["total"] == 2
        assert [e["payload"] for e in body["events"]] == ["two", "one"]
        assert body["events"][0]["channel"] == "search"

    def test_events_should_pass_limit_and_channel(self, client: TestClient) -> None:
        mock = MagicMock(spec=ChannelService)
        mock.get_recent_events.return_value = []
        set_channel_service(mock)
        try:
            client.get("/events?limit=10&channel=sync")
        finally:
            set_channel_service(None)

        mock.get_recent_events.assert_called_once_with(10, channel="sync")

    def test_events_should_reject_out_of_range_limit(
        self, client: TestClient, service: ChannelService
    ) -> None:
        assert client.get("/events?limit=0").status_code == 422
        assert client.get("/events?limit=101").status_code == 422
