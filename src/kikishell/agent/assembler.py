"""Build the request body and keep it within the server's context size."""

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from kikishell.agent.cancel import RequestScope
from kikishell.agent.prompts import ATTACHMENT_HEADER, RETRIEVAL_HEADER
from kikishell.agent.reducer import SUMMARY_TOKEN_BUDGET, IterativeReducer
from kikishell.agent.session import Session
from kikishell.budget import HeuristicEstimator
from kikishell.chunkers import ParagraphChunker
from kikishell.config import Config
from kikishell.errors import CompletionError, InputError
from kikishell.llm.types import ChatMessage
from kikishell.models import Chunk
from kikishell.protocols import ChunkingStrategy, TokenEstimator
from kikishell.utils.paths import expand_path
from kikishell.utils.text import decode_clipped

logger = logging.getLogger(__name__)

# Fold calls are short, cool and never streamed.
FOLD_TEMPERATURE = 0.2
FOLD_MAX_TOKENS = SUMMARY_TOKEN_BUDGET


class CompletionBackend(Protocol):
    """What the assembler needs from a completion client."""

    def complete(
        self,
        messages: list[ChatMessage],
        model: str,
        temperature: float = 0.0,
        max_tokens: int = 0,
        stream: bool = False,
        on_text: Optional[Callable[[str], None]] = None,
        scope: RequestScope | None = None,
    ) -> str:
        ...


@dataclass
class AssembledContent:
    """The user message plus the attachments that went into it."""

    body: str
    files: list[str] = field(default_factory=list)
    hashes: list[str] = field(default_factory=list)


@dataclass
class AskResult:
    """Answer and audit metadata of one ask."""

    answer: str
    system_prompt: str
    files: list[str] = field(default_factory=list)
    hashes: list[str] = field(default_factory=list)
    chunks: int = 0
    calls: int = 1

    @property
    def chunked(self) -> bool:
        return self.chunks > 1


def read_attachment(path: str, max_bytes: int, max_chars: int) -> tuple[str, str, str]:
    """Read an attached file and format it as a prompt block.

    The hash is taken over the full file, before the byte and character
    ceilings cut the text.

    Returns:
        (resolved path, sha256 hex, formatted block)

    Raises:
        InputError: empty path or unreadable file
    """
    if not path or not path.strip():
        raise InputError("empty file path")
    resolved = expand_path(path)
    try:
        data = resolved.read_bytes()
    except OSError as e:
        raise InputError(f"cannot read {resolved}: {e.strerror or e}") from e

    digest = hashlib.sha256(data).hexdigest()
    text = decode_clipped(data, max_bytes, max_chars)
    block = f"### FILE: {resolved} (sha256:{digest})\n```\n{text}\n```\n"
    return str(resolved), digest, block


def capacity_hint(session: Session) -> str | None:
    """Advice for when the server runs with less context than requested."""
    if not session.budget.needs_restart_hint():
        return None
    return (
        f"hint: server ctx-size={session.budget.observed}. "
        f"restart the llama.cpp server with --ctx-size {session.budget.target}"
    )


class ContextAssembler:
    """Turn a question into one or more completion calls.

    Retrieved excerpts and attached files are merged into the user message
    first, so the budget check accounts for them. A message that fits the
    usable budget goes out directly; a larger one is split and folded
    through an IterativeReducer, and the final call answers from the
    summary.

    When the server rejects a request and names its context size, that
    size becomes the session's observed budget for later requests.
    """

    def __init__(
        self,
        client: CompletionBackend,
        config: Config,
        estimator: TokenEstimator | None = None,
        chunker: ChunkingStrategy | None = None,
    ):
        self.client = client
        self.config = config
        self.estimator = estimator or HeuristicEstimator(config.chars_per_token)
        self.chunker = chunker or ParagraphChunker(self.estimator)

    def build(self, question: str, session: Session, files: list[str] | None = None) -> AssembledContent:
        """Assemble question, retrieved excerpts and attached files."""
        files = session.files if files is None else files
        parts = [question.strip()]

        if session.index.enabled:
            excerpts = session.index.search(
                question, self.config.rag_top_k, self.config.rag_max_chars
            )
            if excerpts:
                parts.append(RETRIEVAL_HEADER)
                for excerpt in excerpts:
                    parts.append(excerpt.render() + "\n\n")

        content = AssembledContent(body="")
        if files:
            parts.append(ATTACHMENT_HEADER)
            for path in files:
                resolved, digest, block = read_attachment(
                    path, self.config.file_max_bytes, self.config.file_max_chars
                )
                content.files.append(resolved)
                content.hashes.append(digest)
                parts.append(block + "\n")

        content.body = "".join(parts)
        return content

    def plan(self, body: str, session: Session) -> list[Chunk]:
        """Decide how body is sent.

        Returns an empty list when it goes out in one request, otherwise the
        chunks to fold (always more than one).
        """
        budget = session.budget.budget()
        if budget is None:
            logger.debug("No context size known; sending directly")
            return []

        tokens = self.estimator.estimate(body)
        if tokens <= budget.usable:
            logger.debug(f"Request fits: {tokens} <= {budget.usable} tokens")
            return []

        chunks = self.chunker.split(body, budget.usable)
        logger.debug(
            f"Request too large: {tokens} > {budget.usable} tokens; {len(chunks)} chunks"
        )
        return chunks if len(chunks) > 1 else []

    def ask(
        self,
        question: str,
        session: Session,
        system_prompt: str | None = None,
        on_text: Optional[Callable[[str], None]] = None,
        scope: RequestScope | None = None,
    ) -> AskResult:
        """Answer question within the session's context budget.

        Raises:
            InputError: empty question or unreadable attachment
            CompletionError: a call failed; a reported context size is
                recorded on the session before this propagates
            RequestCancelled: interrupted or out of time
        """
        if not question or not question.strip():
            raise InputError("prompt is empty")

        content = self.build(question, session)
        system = system_prompt if system_prompt is not None else session.system_prompt(self.config)
        result = AskResult(
            answer="", system_prompt=system, files=content.files, hashes=content.hashes
        )

        def call(user: str, *, final: bool) -> str:
            if final:
                return self.client.complete(
                    [ChatMessage("system", system), ChatMessage("user", user)],
                    model=self.config.model,
                    temperature=self.config.temperature,
                    max_tokens=self.config.max_tokens,
                    stream=session.stream,
                    on_text=on_text,
                    scope=scope,
                )
            return self.client.complete(
                [ChatMessage("system", system), ChatMessage("user", user)],
                model=self.config.model,
                temperature=FOLD_TEMPERATURE,
                max_tokens=FOLD_MAX_TOKENS,
                stream=False,
                scope=scope,
            )

        try:
            chunks = self.plan(content.body, session)
            if not chunks:
                result.answer = call(content.body, final=True)
                return result

            reducer = IterativeReducer(self.estimator)
            result.answer = reducer.reduce(chunks, call, question, scope)
            result.chunks = len(chunks)
            result.calls = reducer.calls
            return result
        except CompletionError as e:
            observed = e.observed_budget
            if observed:
                session.budget.observe(observed)
            raise
