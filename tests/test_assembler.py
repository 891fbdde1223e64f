"""Tests for context assembly and the ask flow."""

import hashlib

import pytest

from kikishell.agent import ContextAssembler, Session, capacity_hint
from kikishell.agent.prompts import ATTACHMENT_HEADER, RETRIEVAL_HEADER
from kikishell.budget import estimate_tokens
from kikishell.errors import CompletionError, InputError
from kikishell.index import RetrievalIndex

from conftest import FakeBackend

OVERFLOW = (
    "API Error: the request exceeds the available context size (4096 tokens), "
    "try increasing it"
)


def large_document() -> str:
    # 50 paragraphs of ~100 tokens each
    return "\n\n".join(("lorem ipsum " * 33).strip() for _ in range(50))


class TestDirectPath:
    def test_small_question_is_sent_unchanged(self, backend, assembler, session):
        backend.replies = ["pong"]

        result = assembler.ask("ping", session)

        assert result.answer == "pong"
        assert len(backend.calls) == 1
        assert backend.calls[0]["user"] == "ping"
        assert result.chunks == 0
        assert not result.chunked

    def test_final_call_uses_session_settings(self, backend, assembler, session, config):
        session.stream = True
        streamed = []

        assembler.ask("ping", session, on_text=streamed.append)

        call = backend.calls[0]
        assert call["stream"] is True
        assert call["temperature"] == config.temperature
        assert call["max_tokens"] == config.max_tokens
        assert streamed == ["reply 1"]

    def test_empty_question_is_rejected(self, backend, assembler, session):
        with pytest.raises(InputError):
            assembler.ask("   ", session)
        assert backend.calls == []

    def test_input_within_budget_is_not_chunked(self, backend, assembler, session):
        session.budget.set_target(8192)

        result = assembler.ask("short question", session)

        assert result.calls == 1
        assert len(backend.calls) == 1


class TestChunkedPath:
    def test_oversized_attachment_is_reduced(self, backend, config, session, write_file):
        config.headroom = 500
        config.file_max_chars = 0
        session = Session.from_config(config, RetrievalIndex(enabled=False))
        session.budget.set_target(1000)
        session.attach(str(write_file("big.log", large_document())))
        assembler = ContextAssembler(backend, config)

        result = assembler.ask("summarise the log", session)

        assert result.chunks >= 10
        assert result.calls == result.chunks + 1
        assert len(backend.calls) == result.chunks + 1

        folds, final = backend.calls[:-1], backend.calls[-1]
        assert all("[PART" in call["user"] for call in folds)
        assert all(call["stream"] is False and call["temperature"] == 0.2 for call in folds)
        assert "[SUMMARY]" in final["user"]
        assert "summarise the log" in final["user"]
        assert result.answer == f"reply {len(backend.calls)}"

    def test_every_chunk_fits_usable_budget(self, backend, config, session, write_file):
        config.headroom = 500
        config.file_max_chars = 0
        session.budget.set_target(1000)
        session.attach(str(write_file("big.log", large_document())))
        assembler = ContextAssembler(backend, config)

        content = assembler.build("question", session)
        chunks = assembler.plan(content.body, session)

        assert estimate_tokens(content.body) > 500
        assert len(chunks) > 1
        assert all(chunk.tokens <= 500 for chunk in chunks)

    def test_observed_budget_takes_precedence(self, backend, config, session):
        session.budget.set_target(100000)
        session.budget.observe(1000)
        assembler = ContextAssembler(backend, config)

        assert assembler.plan("x " * 4000, session)


class TestAssembly:
    def test_attachment_block_and_hash(self, assembler, session, write_file):
        path = write_file("app.log", "ERROR disk full\n")
        session.attach(str(path))

        content = assembler.build("why?", session)

        digest = hashlib.sha256(b"ERROR disk full\n").hexdigest()
        assert content.hashes == [digest]
        assert content.files == [str(path)]
        assert ATTACHMENT_HEADER in content.body
        assert f"### FILE: {path} (sha256:{digest})\n```\nERROR disk full\n\n```\n" in content.body

    def test_hash_covers_the_whole_file(self, assembler, session, config, write_file):
        config.file_max_chars = 5
        path = write_file("long.txt", "abcdefghij")
        session.attach(str(path))

        content = assembler.build("q", session)

        assert content.hashes == [hashlib.sha256(b"abcdefghij").hexdigest()]
        assert "abcde\n```" in content.body
        assert "abcdef" not in content.body

    def test_retrieved_excerpts_precede_attachments(self, backend, config, write_file):
        index = RetrievalIndex()
        index.upsert("notes.txt", None, "the disk is full")
        session = Session.from_config(config, index)
        session.attach(str(write_file("a.txt", "attached")))

        body = ContextAssembler(backend, config).build("disk?", session).body

        assert body.startswith("disk?")
        assert "### RAG: notes.txt" in body
        assert body.index(RETRIEVAL_HEADER) < body.index(ATTACHMENT_HEADER)

    def test_unreadable_attachment_is_reported_before_sending(self, backend, assembler, session, tmp_path):
        session.files.append(str(tmp_path / "gone.txt"))

        with pytest.raises(InputError):
            assembler.ask("q", session)
        assert backend.calls == []


class TestRejection:
    def test_reported_size_is_remembered(self, config, session):
        session.budget.set_target(8192)
        backend = FakeBackend(error=CompletionError(OVERFLOW))
        assembler = ContextAssembler(backend, config)

        with pytest.raises(CompletionError):
            assembler.ask("ping", session)

        assert session.budget.observed == 4096
        assert "--ctx-size 8192" in capacity_hint(session)

    def test_next_request_plans_against_observed_size(self, config, session):
        backend = FakeBackend(error=CompletionError(OVERFLOW))
        with pytest.raises(CompletionError):
            ContextAssembler(backend, config).ask("ping", session)

        backend.error = None
        assembler = ContextAssembler(backend, config)
        result = assembler.ask("x " * 10000, session)

        assert result.chunked

    def test_other_errors_leave_budget_alone(self, config, session):
        backend = FakeBackend(error=CompletionError("HTTP 500: boom"))

        with pytest.raises(CompletionError):
            ContextAssembler(backend, config).ask("ping", session)

        assert session.budget.observed == 0
        assert capacity_hint(session) is None


class TestSession:
    def test_system_prompt_sections(self, config, session):
        session.set_context("ns", "kube-system")
        session.set_context("cluster", "prod")

        prompt = session.system_prompt(config)

        assert prompt.startswith(config.system_prompt)
        assert "[Output Rules]" in prompt
        assert prompt.index("- cluster: prod") < prompt.index("- ns: kube-system")

    def test_no_fence_off_omits_rules(self, config, session):
        session.no_fence = False
        assert "[Output Rules]" not in session.system_prompt(config, "custom")
        assert session.system_prompt(config, "custom") == "custom"

    def test_attach_and_detach(self, session, write_file):
        path = write_file("a.txt", "a")
        session.attach(f"  {path}  ")
        assert session.files == [str(path)]

        with pytest.raises(InputError):
            session.detach(2)
        assert session.detach(1) == str(path)

    def test_attach_missing_file(self, session, tmp_path):
        with pytest.raises(InputError):
            session.attach(str(tmp_path / "missing.txt"))
