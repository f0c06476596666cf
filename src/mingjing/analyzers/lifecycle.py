"""
Lifecycle Controller Module
Four-state machine gating one in-flight analysis per session:

    Idle --submit--> Analyzing --success--> Completed(result)
                               --failure--> Failed(message)
    Completed | Failed --reset--> Idle
"""

import asyncio
import logging
from typing import Optional

from mingjing.core.errors import ANALYSIS_FAILED_MESSAGE, AnalysisError
from mingjing.core.models import (
    AnalysisRequest,
    Analyzing,
    Completed,
    Failed,
    Idle,
    LifecycleState,
)
from .input_collector import InputCollector
from .pua_agent import PuaAnalysisAgent

logger = logging.getLogger("MINGJING_LIFECYCLE")


class LifecycleController:
    """
    Owns the session's LifecycleState; nothing else writes it.

    Submission is only accepted from Idle, so at most one provider call is
    in flight. There is no cancellation: once dispatched, the call runs to
    success or failure.
    """

    def __init__(self, agent: PuaAnalysisAgent, collector: Optional[InputCollector] = None):
        self.agent = agent
        self.collector = collector or InputCollector()
        self._state: LifecycleState = Idle()
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def is_analyzing(self) -> bool:
        return isinstance(self._state, Analyzing)

    def submit(self, request: AnalysisRequest) -> bool:
        """
        Dispatch an analysis for a validated request.

        Returns:
            True if the analysis was started, False if the controller was not
            Idle (the submission has no effect)
        """
        if not isinstance(self._state, Idle):
            logger.info("Submit ignored in state %s", self._state.status.value)
            return False

        self._state = Analyzing()
        self._task = asyncio.create_task(self._run(request))
        return True

    def submit_staged(self) -> bool:
        """Build a request from the collector and submit it."""
        if not isinstance(self._state, Idle):
            logger.info("Submit ignored in state %s", self._state.status.value)
            return False
        return self.submit(self.collector.build_request())

    def reset(self) -> bool:
        """
        Return to Idle, discarding any result or error and the staged input.

        Returns:
            False while an analysis is in flight (no effect), True otherwise
        """
        if self.is_analyzing:
            logger.info("Reset ignored while analyzing")
            return False

        self._state = Idle()
        self._task = None
        self.collector.clear()
        return True

    async def wait(self) -> LifecycleState:
        """Wait for the in-flight analysis (if any) and return the resulting state."""
        if self._task is not None:
            await asyncio.shield(self._task)
        return self._state

    async def _run(self, request: AnalysisRequest) -> None:
        try:
            result = await self.agent.analyze(request)
        except AnalysisError as e:
            logger.warning("Analysis failed: %s", e)
            self._state = Failed(message=ANALYSIS_FAILED_MESSAGE)
        except Exception:
            # Never leave the session stuck in Analyzing
            logger.exception("Unexpected error during analysis")
            self._state = Failed(message=ANALYSIS_FAILED_MESSAGE)
        else:
            self._state = Completed(result=result)
