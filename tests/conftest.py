"""Shared pytest fixtures"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from pika_backend.main import app
from pika_backend.services.config_manager import ConfigManager


class FakeLLMService:
    """Stands in for LLMService, replaying canned replies"""

    def __init__(self, *responses: str | Exception):
        self.responses = list(responses)
        self.calls: list[dict] = []

    async def generate_response(self, prompt, instructions=None, json_output=False):
        self.calls.append(
            {"prompt": prompt, "instructions": instructions, "json_output": json_output}
        )
        reply = self.responses.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture(autouse=True)
def config_dir(tmp_path, monkeypatch):
    """Point the config manager at a fresh directory for every test"""
    monkeypatch.setenv("PIKA_CONFIG_DIR", str(tmp_path))
    ConfigManager.reset_instance()
    yield tmp_path
    ConfigManager.reset_instance()


@pytest.fixture
def client(config_dir):
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
