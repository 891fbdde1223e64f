"""Fold an oversized input into a running summary, then answer from it."""

import enum
import logging
from typing import Protocol

from kikishell.agent.cancel import RequestScope
from kikishell.agent.prompts import CHUNK_PROMPT, CHUNK_UPDATE_PROMPT, FINAL_PROMPT
from kikishell.budget import HeuristicEstimator
from kikishell.models import Chunk
from kikishell.protocols import TokenEstimator

logger = logging.getLogger(__name__)

EMPTY_SUMMARY = "(empty summary)"
# The running summary is regenerated each step and never grows past this.
SUMMARY_TOKEN_BUDGET = 512


class CompletionCallback(Protocol):
    def __call__(self, prompt: str, *, final: bool) -> str:
        """Send prompt as the user message and return the reply."""
        ...


class ReducerState(enum.Enum):
    EMPTY = "empty"
    ACCUMULATING = "accumulating"
    DONE = "done"


class IterativeReducer:
    """Sequential map-fold over chunks with a single running summary.

    Each step's prompt carries the previous step's summary, so the calls
    cannot run in parallel. An error from any call aborts the whole pass:
    a summary that silently skipped a chunk would look complete.
    """

    def __init__(
        self,
        estimator: TokenEstimator | None = None,
        summary_budget: int = SUMMARY_TOKEN_BUDGET,
    ):
        self.estimator = estimator or HeuristicEstimator()
        self.summary_budget = summary_budget
        self.state = ReducerState.EMPTY
        self.summary = ""
        self.calls = 0

    def reduce(
        self,
        chunks: list[Chunk],
        complete: CompletionCallback,
        question: str,
        scope: RequestScope | None = None,
    ) -> str:
        """Fold every chunk, then answer question from the final summary.

        Issues exactly len(chunks) fold calls followed by one final call.
        """
        summary = self.fold(chunks, complete, scope)

        if scope is not None:
            scope.check()
        self.calls += 1
        answer = complete(
            FINAL_PROMPT.format(summary=summary, question=question.strip()),
            final=True,
        )
        self.state = ReducerState.DONE
        return answer

    def fold(
        self,
        chunks: list[Chunk],
        complete: CompletionCallback,
        scope: RequestScope | None = None,
    ) -> str:
        """Run the accumulation phase and return the running summary."""
        self.state = ReducerState.EMPTY
        self.summary = ""
        self.calls = 0

        total = len(chunks)
        for position, chunk in enumerate(chunks, 1):
            if scope is not None:
                scope.check()

            prompt = self._chunk_prompt(position, total, chunk.text, self.summary)
            self.calls += 1
            reply = complete(prompt, final=False)

            self.summary = self._clip(reply.strip() or EMPTY_SUMMARY)
            self.state = ReducerState.ACCUMULATING
            logger.debug(
                f"Folded part {position}/{total} "
                f"({chunk.tokens} tokens) -> summary of {self.estimator.estimate(self.summary)} tokens"
            )

        return self.summary

    @staticmethod
    def _chunk_prompt(index: int, total: int, chunk: str, summary: str) -> str:
        chunk = chunk.strip()
        summary = summary.strip()
        if not summary:
            return CHUNK_PROMPT.format(index=index, total=total, chunk=chunk)
        return CHUNK_UPDATE_PROMPT.format(index=index, total=total, chunk=chunk, summary=summary)

    def _clip(self, summary: str) -> str:
        if self.estimator.estimate(summary) <= self.summary_budget:
            return summary
        # Shrink proportionally; strictly decreasing while over budget
        limit = len(summary)
        while limit > 0:
            tokens = self.estimator.estimate(summary[:limit])
            if tokens <= self.summary_budget:
                break
            limit = limit * self.summary_budget // tokens
        logger.debug(f"Clipped running summary from {len(summary)} to {limit} chars")
        return summary[:limit].rstrip()
