"""Shared test fixtures for kiki tests."""

import pytest

from kikishell.agent import ContextAssembler, Session
from kikishell.config import Config
from kikishell.index import RetrievalIndex


class FakeBackend:
    """Stands in for CompletionClient and records every call.

    Replies are taken from ``replies`` in order; once exhausted, each call
    answers ``reply N``. Setting ``error`` makes every call raise it.
    """

    def __init__(self, replies=None, error=None):
        self.replies = list(replies or [])
        self.error = error
        self.calls = []

    def complete(
        self,
        messages,
        model,
        temperature=0.0,
        max_tokens=0,
        stream=False,
        on_text=None,
        scope=None,
    ):
        self.calls.append(
            {
                "system": messages[0].content,
                "user": messages[-1].content,
                "model": model,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "stream": stream,
            }
        )
        if self.error is not None:
            raise self.error
        reply = self.replies.pop(0) if self.replies else f"reply {len(self.calls)}"
        if stream and on_text is not None:
            on_text(reply)
        return reply


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def config(tmp_path):
    """Config isolated from the environment and the home directory."""
    return Config(
        history_path=tmp_path / "history.jsonl",
        index_path=tmp_path / "index.db",
    )


@pytest.fixture
def session(config):
    return Session.from_config(config, RetrievalIndex(enabled=False))


@pytest.fixture
def assembler(backend, config):
    return ContextAssembler(backend, config)


@pytest.fixture
def write_file(tmp_path):
    """Factory fixture writing text files under tmp_path."""

    def _write(name: str, content: str):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write
