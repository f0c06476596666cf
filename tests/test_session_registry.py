import asyncio

import pytest

from mingjing import config
from mingjing.analyzers.pua_agent import PuaAnalysisAgent
from mingjing.api.services.session_registry import SessionRegistry
from mingjing.core.models import AnalysisRequest

from conftest import FakeProvider


@pytest.fixture
async def registry(agent):
    SessionRegistry.install(agent)
    yield SessionRegistry
    await SessionRegistry.unload_all()


def _age(registry, session_id, seconds):
    registry._last_seen[session_id] -= seconds


async def test_create_requires_an_agent():
    await SessionRegistry.unload_all()
    with pytest.raises(RuntimeError):
        SessionRegistry.create()


async def test_unused_sessions_expire(registry):
    old, _ = registry.create()
    recent, _ = registry.create()
    _age(registry, old, config.SESSION_TTL_SECONDS + 1)

    registry.create()
    assert registry.get(old) is None
    assert registry.get(recent) is not None
    assert registry.active_sessions() == 2


async def test_access_refreshes_a_session(registry):
    session_id, _ = registry.create()
    _age(registry, session_id, config.SESSION_TTL_SECONDS + 1)
    registry.get(session_id)

    assert registry.evict_stale() == 0
    assert registry.get(session_id) is not None


async def test_cap_evicts_least_recently_used(registry, monkeypatch):
    monkeypatch.setattr(config, "MAX_SESSIONS", 2)
    kept, _ = registry.create()
    dropped, _ = registry.create()
    _age(registry, kept, 5)
    _age(registry, dropped, 10)

    newest, _ = registry.create()
    assert registry.active_sessions() == 2
    assert registry.get(dropped) is None
    assert registry.get(kept) is not None
    assert registry.get(newest) is not None


async def test_analyzing_session_is_never_evicted(registry, monkeypatch):
    monkeypatch.setattr(config, "MAX_SESSIONS", 1)
    gate = asyncio.Event()
    registry.install(PuaAnalysisAgent(FakeProvider(gate=gate)))

    busy_id, busy = registry.create()
    assert busy.submit(AnalysisRequest.create("x"))
    _age(registry, busy_id, config.SESSION_TTL_SECONDS + 1)

    idle_id, _ = registry.create()
    assert registry.get(busy_id) is busy
    registry.create()
    assert registry.get(busy_id) is busy
    assert registry.get(idle_id) is None

    gate.set()
    await busy.wait()
