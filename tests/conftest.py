from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest
from loguru import logger

from sift.config import Settings
from sift.remote.base import RemoteServices
from tests.fakes import FakeRemote


@pytest.fixture
def make_remote() -> Callable[..., tuple[FakeRemote, RemoteServices]]:
    def _make(**kwargs: Any) -> tuple[FakeRemote, RemoteServices]:
        fake = FakeRemote(**kwargs)
        return fake, RemoteServices.from_backend(fake)

    return _make


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_key="test",
        model="gpt-test",
        deadline_seconds=5,
        max_turns=20,
        release_timeout_seconds=1,
        _env_file=None,
    )


@pytest.fixture
def log_messages() -> Iterator[list[str]]:
    messages: list[str] = []
    handler_id = logger.add(
        lambda message: messages.append(f"{message.record['level'].name} {message.record['message']}"),
        level="DEBUG",
    )
    yield messages
    logger.remove(handler_id)
