"""Tests for the iterative reducer."""

import pytest

from kikishell.agent import IterativeReducer, ReducerState, RequestScope
from kikishell.agent.reducer import EMPTY_SUMMARY
from kikishell.budget import estimate_tokens
from kikishell.errors import CompletionError, RequestCancelled
from kikishell.models import Chunk


def make_chunks(*texts):
    return [
        Chunk(text=text, index=i, start_char=0, end_char=len(text), tokens=estimate_tokens(text))
        for i, text in enumerate(texts)
    ]


class Recorder:
    """Completion callback returning scripted replies."""

    def __init__(self, *replies, fail_on=None):
        self.replies = list(replies)
        self.fail_on = fail_on
        self.prompts = []

    def __call__(self, prompt, *, final):
        self.prompts.append((prompt, final))
        if self.fail_on == len(self.prompts):
            raise CompletionError("HTTP 500: boom")
        return self.replies.pop(0) if self.replies else f"summary {len(self.prompts)}"


class TestIterativeReducer:
    def test_one_call_per_chunk_plus_final(self):
        complete = Recorder("s1", "s2", "s3", "the answer")
        reducer = IterativeReducer()

        answer = reducer.reduce(make_chunks("one", "two", "three"), complete, "what?")

        assert answer == "the answer"
        assert reducer.calls == 4
        assert [final for _, final in complete.prompts] == [False, False, False, True]
        assert reducer.state is ReducerState.DONE

    def test_prompts_carry_position_and_running_summary(self):
        complete = Recorder("first summary", "second summary", "answer")

        IterativeReducer().reduce(make_chunks("alpha", "beta"), complete, " why? ")

        first, second, final = (prompt for prompt, _ in complete.prompts)
        assert "[PART 1/2]" in first and "alpha" in first
        assert "[CURRENT SUMMARY]" not in first
        assert "[PART 2/2]" in second and "first summary" in second
        assert "second summary" in final
        assert final.rstrip().endswith("why?")

    def test_summary_is_trimmed(self):
        reducer = IterativeReducer()
        summary = reducer.fold(make_chunks("alpha"), Recorder("  padded  \n"))
        assert summary == "padded"
        assert reducer.state is ReducerState.ACCUMULATING

    def test_empty_reply_becomes_placeholder(self):
        complete = Recorder("   ", "kept", "answer")

        IterativeReducer().reduce(make_chunks("alpha", "beta"), complete, "q")

        assert EMPTY_SUMMARY in complete.prompts[1][0]

    def test_error_aborts_the_pass(self):
        complete = Recorder(fail_on=2)

        with pytest.raises(CompletionError):
            IterativeReducer().reduce(make_chunks("a", "b", "c"), complete, "q")

        assert len(complete.prompts) == 2

    def test_summary_stays_within_budget(self):
        reducer = IterativeReducer(summary_budget=10)

        summary = reducer.fold(make_chunks("a", "b"), Recorder("x" * 400, "y " * 300))

        assert estimate_tokens(summary) <= 10

    def test_cancelled_scope_stops_before_calling(self):
        scope = RequestScope()
        scope.cancel("interrupted")
        complete = Recorder()

        with pytest.raises(RequestCancelled):
            IterativeReducer().reduce(make_chunks("a"), complete, "q", scope)

        assert complete.prompts == []
