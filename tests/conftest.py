import os
import sys

import pytest
from loguru import logger


PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")

if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during a test."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    # Settings read the process env; keep a developer's .env values out of tests
    for key in list(os.environ):
        if key.split("_", 1)[0] in {"IMAP", "GMAIL", "GOOGLE", "OUTLOOK", "NOTIFY", "SMTP"}:
            monkeypatch.delenv(key, raising=False)
