from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


class RecordingTransport:
    """Stands in for ``WebSocket.send_text`` and keeps the decoded messages."""

    def __init__(self) -> None:
        self.sent: list[dict] = []

    async def send_text(self, text: str) -> None:
        self.sent.append(json.loads(text))


@pytest.fixture(scope="session")
def app():
    # Must be set before importing modules that read settings.
    os.environ["PUBLIC_BASE_URL"] = "https://relay.example.com"
    os.environ["WELCOME_GREETING"] = "Hello caller"
    os.environ["SYSTEM_PROMPT"] = "SYS"
    os.environ["ELEVENLABS_VOICE_ID"] = "voice123"
    os.environ["ELEVENLABS_MODEL"] = "flash_v2_5"
    os.environ["ELEVENLABS_SPEED"] = "1.0"
    os.environ["ELEVENLABS_STABILITY"] = "0.8"
    os.environ["ELEVENLABS_SIMILARITY"] = "0.8"
    os.environ.pop("CONVERSATIONAL_INTELLIGENCE_SID", None)

    import importlib

    # Ensure clean import with the test settings.
    for module_name in [
        "config.settings",
        "api.dependencies",
        "api.twilio_routes",
        "api.routes",
        "main",
    ]:
        sys.modules.pop(module_name, None)

    main = importlib.import_module("main")
    return main.app


@pytest.fixture()
def transport() -> RecordingTransport:
    return RecordingTransport()
