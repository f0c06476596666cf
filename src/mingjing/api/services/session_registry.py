"""Central session registry - one analysis agent shared by all sessions."""
import logging
import time
import uuid
from typing import Optional

from mingjing import config
from mingjing.analyzers.lifecycle import LifecycleController
from mingjing.analyzers.pua_agent import PuaAnalysisAgent
from mingjing.reporting import ReportGenerator

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    Central registry for the analysis agent, the report generator and the
    per-session lifecycle controllers.

    The agent is created once at startup and shared across sessions; each
    session owns an independent controller kept in memory only. Sessions
    unused for SESSION_TTL_SECONDS, or the least recently used ones beyond
    MAX_SESSIONS, are evicted when a new session is created.
    """
    _agent: Optional[PuaAnalysisAgent] = None
    _reports: Optional[ReportGenerator] = None
    _sessions: dict[str, LifecycleController] = {}
    _last_seen: dict[str, float] = {}

    @classmethod
    async def load_all(cls) -> None:
        """Create the Gemini-backed agent and the report generator at startup."""
        from mingjing.analyzers.gemini_provider import GeminiProvider

        if cls._agent is None:
            cls._agent = PuaAnalysisAgent(GeminiProvider())
            if cls._agent.validate():
                logger.info("✓ Analysis agent ready")
            else:
                logger.warning("✗ Analysis agent not configured; every analysis will fail until "
                               "GOOGLE_API_KEY is set")
        if cls._reports is None:
            cls._reports = ReportGenerator()

    @classmethod
    def install(cls, agent: PuaAnalysisAgent, reports: Optional[ReportGenerator] = None) -> None:
        """Use a specific agent (and optionally report generator) instead of the defaults."""
        cls._agent = agent
        if reports is not None:
            cls._reports = reports

    @classmethod
    async def unload_all(cls) -> None:
        """Drop all sessions and the shared agent at shutdown."""
        cls._sessions.clear()
        cls._last_seen.clear()
        cls._agent = None
        cls._reports = None
        logger.info("All sessions discarded")

    @classmethod
    def agent(cls) -> PuaAnalysisAgent:
        if cls._agent is None:
            raise RuntimeError("Analysis agent is not available.")
        return cls._agent

    @classmethod
    def reports(cls) -> ReportGenerator:
        if cls._reports is None:
            cls._reports = ReportGenerator()
        return cls._reports

    # ------------------------------------------------------------------
    @classmethod
    def create(cls) -> tuple[str, LifecycleController]:
        """Register a new session in the Idle state, evicting stale sessions first."""
        agent = cls.agent()
        cls.evict_stale()
        session_id = str(uuid.uuid4())
        cls._sessions[session_id] = LifecycleController(agent)
        cls._last_seen[session_id] = time.monotonic()
        logger.debug("Session %s created", session_id)
        return session_id, cls._sessions[session_id]

    @classmethod
    def get(cls, session_id: str) -> Optional[LifecycleController]:
        controller = cls._sessions.get(session_id)
        if controller is not None:
            cls._last_seen[session_id] = time.monotonic()
        return controller

    @classmethod
    def discard(cls, session_id: str) -> bool:
        cls._last_seen.pop(session_id, None)
        return cls._sessions.pop(session_id, None) is not None

    @classmethod
    def active_sessions(cls) -> int:
        return len(cls._sessions)

    @classmethod
    def evict_stale(cls) -> int:
        """
        Drop sessions unused for SESSION_TTL_SECONDS, then the least recently
        used ones until there is room for one more under MAX_SESSIONS.

        A session that is analyzing is never evicted.

        Returns:
            Number of sessions evicted
        """
        now = time.monotonic()
        idle = sorted(
            (sid for sid, controller in cls._sessions.items() if not controller.is_analyzing),
            key=cls._last_seen.__getitem__,
        )
        expired = [sid for sid in idle if now - cls._last_seen[sid] > config.SESSION_TTL_SECONDS]
        overflow = len(cls._sessions) - len(expired) - (config.MAX_SESSIONS - 1)
        remaining = [sid for sid in idle if sid not in expired]
        victims = expired + remaining[:max(overflow, 0)]

        for sid in victims:
            cls.discard(sid)
        if victims:
            logger.info("Evicted %d stale session(s)", len(victims))
        return len(victims)
