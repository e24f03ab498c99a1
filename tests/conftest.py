"""Shared fixtures: isolated settings, in-memory state and fake Gemini models."""

from io import BytesIO
from types import SimpleNamespace

import pytest
from PIL import Image

from finance_tracker.config import get_settings
from finance_tracker.services.storage import LocalStorage
from finance_tracker.state import FinanceStore


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Each test sees only the environment it sets itself."""
    monkeypatch.chdir(tmp_path)
    for name in ("GEMINI_API_KEY", "STORAGE_DATA_DIR", "DEFAULT_CURRENCY"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store():
    return FinanceStore.load(LocalStorage.in_memory())


def make_image(width: int, height: int, mode: str = "RGB", fmt: str = "PNG") -> bytes:
    color = (200, 30, 30, 128) if mode == "RGBA" else (200, 30, 30)
    buffer = BytesIO()
    Image.new(mode, (width, height), color).save(buffer, format=fmt)
    return buffer.getvalue()


class FakeExtractionModel:
    """Stands in for GenerativeModel.generate_content_async."""

    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def generate_content_async(self, contents):
        self.calls.append(contents)
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


class FakeChat:
    def __init__(self, owner):
        self._owner = owner

    async def send_message_async(self, message):
        self._owner.sent.append(message)
        if self._owner.error:
            raise self._owner.error
        return SimpleNamespace(text=self._owner.reply)


class FakeChatModelFactory:
    """Stands in for the GenerativeModel factory used by the assistant."""

    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.system_instructions = []
        self.histories = []
        self.sent = []

    def __call__(self, system_instruction):
        self.system_instructions.append(system_instruction)
        return self

    def start_chat(self, history):
        self.histories.append(history)
        return FakeChat(self)
