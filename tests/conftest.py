"""Shared fixtures: a scripted provider standing in for Gemini."""
import base64
import io
import json
import time

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from mingjing.analyzers.interface import ProviderInterface
from mingjing.analyzers.pua_agent import PuaAnalysisAgent
from mingjing.api.main import app
from mingjing.api.services.session_registry import SessionRegistry
from mingjing.reporting import ReportGenerator

SAMPLE_TEXT = "公司就是家，不要总是计较个人得失"

SAMPLE_VERDICT = {
    "score": 75,
    "verdict": "PUA预警",
    "summary": "上级以“家”为名模糊劳动关系边界。",
    "details": ["将公司比作家庭", "否定个人诉求的正当性", "以道德压力替代合理回报"],
    "advice": "明确工作职责与报酬，保留沟通记录。",
    "tone": "情感绑架",
}


class FakeProvider(ProviderInterface):
    """Records every call and replies with a scripted text or exception."""

    def __init__(self, response=None, error=None, gate=None):
        self.response = json.dumps(SAMPLE_VERDICT, ensure_ascii=False) if response is None else response
        self.error = error
        self.gate = gate
        self.calls = []

    def validate(self) -> bool:
        return True

    async def generate(self, parts, schema, settings):
        self.calls.append({"parts": parts, "schema": schema, "settings": settings})
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.response


def make_png(width: int = 4, height: int = 4) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), "#ffffff").save(buffer, format="PNG")
    return buffer.getvalue()


def png_data_url() -> str:
    return "data:image/png;base64," + base64.b64encode(make_png()).decode("ascii")


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def agent(provider):
    return PuaAnalysisAgent(provider)


@pytest.fixture
def reports():
    # Built-in font keeps rendering independent of the host's CJK fonts
    return ReportGenerator(font_path="", scale=1)


@pytest.fixture
def client(agent, reports):
    SessionRegistry.install(agent, reports)
    with TestClient(app) as test_client:
        yield test_client


def wait_for_status(client, session_id, expected, timeout=5.0):
    """Poll a session until it leaves ANALYZING (or reaches the expected status)."""
    deadline = time.monotonic() + timeout
    while True:
        body = client.get(f"/api/sessions/{session_id}").json()
        if body["state"]["status"] == expected or time.monotonic() > deadline:
            return body
        time.sleep(0.01)
