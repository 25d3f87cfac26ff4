from datetime import datetime, timezone

import pytest

from app import providers
from app.config import settings
from app.errors import ProviderError

UTC = timezone.utc


def _rec(recall_id, day):
    return {"recallId": recall_id, "recallDate": datetime(2025, 1, day, tzinfo=UTC)}


def test_merge_recalls_dedupes_first_wins_and_sorts():
    fda = [_rec("A", 1), {**_rec("B", 5), "source": "fda"}]
    fsis = [{**_rec("B", 9), "source": "fsis"}, _rec("C", 3), {"recallId": "D"}]

    merged = providers.merge_recalls([fda, fsis], limit=10)

    assert [r["recallId"] for r in merged] == ["B", "C", "A", "D"]
    assert merged[0]["source"] == "fda"


def test_merge_recalls_truncates():
    merged = providers.merge_recalls([[_rec("A", 1), _rec("B", 2), _rec("C", 3)]], limit=2)
    assert [r["recallId"] for r in merged] == ["C", "B"]


async def test_fetch_all_recalls_survives_a_failing_provider(monkeypatch):
    async def fake_fda(limit, search, months_back):
        raise RuntimeError("unexpected")

    async def fake_fsis(limit, search, months_back):
        return [_rec("FSIS-1", 2)]

    monkeypatch.setattr(providers, "fetch_fda_recalls", fake_fda)
    monkeypatch.setattr(providers, "fetch_fsis_recalls", fake_fsis)

    assert [r["recallId"] for r in await providers.fetch_all_recalls(limit=5)] == ["FSIS-1"]


async def test_fetch_all_recalls_passes_arguments(monkeypatch):
    calls = []

    async def fake_fetch(limit, search, months_back):
        calls.append((limit, search, months_back))
        return []

    monkeypatch.setattr(providers, "fetch_fda_recalls", fake_fetch)
    monkeypatch.setattr(providers, "fetch_fsis_recalls", fake_fetch)

    await providers.search_recalls("salmon", limit=7)

    assert calls == [(7, "salmon", settings.SEARCH_MONTHS_BACK)] * 2


async def test_disabled_provider_is_not_called(monkeypatch):
    async def fake_fda(limit, search, months_back):
        return [_rec("FDA-1", 1)]

    async def must_not_run(limit, search, months_back):
        raise AssertionError("FSIS is disabled")

    monkeypatch.setattr(providers, "fetch_fda_recalls", fake_fda)
    monkeypatch.setattr(providers, "fetch_fsis_recalls", must_not_run)
    monkeypatch.setattr(settings, "FSIS_ENABLED", False)

    assert [r["recallId"] for r in await providers.fetch_all_recalls()] == ["FDA-1"]


async def test_no_enabled_providers(monkeypatch):
    monkeypatch.setattr(settings, "FDA_ENABLED", False)
    monkeypatch.setattr(settings, "FSIS_ENABLED", False)
    assert await providers.fetch_all_recalls() == []


class _HealthyClient:
    async def ping(self, timeout):
        return None


class _FailingClient:
    async def ping(self, timeout):
        raise ProviderError("FSIS", "GET error 503", 503)


async def test_check_providers(monkeypatch):
    monkeypatch.setattr(providers, "FdaClient", _HealthyClient)
    monkeypatch.setattr(providers, "FsisClient", _FailingClient)

    report = await providers.check_providers()

    assert report["fda"]["status"] == "healthy"
    assert report["fda"]["error"] is None
    assert report["fsis"]["status"] == "unhealthy"
    assert "503" in report["fsis"]["error"]
    assert report["fsis"]["responseTimeMs"] >= 0


@pytest.mark.parametrize("exc", [ProviderError("FDA", "down"), TimeoutError()])
async def test_ping_provider_reports_failure(exc):
    class Client:
        async def ping(self, timeout):
            raise exc

    assert (await providers._ping_provider(Client()))["status"] == "unhealthy"
