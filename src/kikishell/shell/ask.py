"""The ask flow shared by the shell and the one-shot CLI."""

import logging
import os
import sys
from datetime import datetime

from kikishell import history
from kikishell.agent.assembler import AskResult, ContextAssembler, capacity_hint
from kikishell.agent.cancel import interrupt_scope
from kikishell.agent.session import Session
from kikishell.config import Config
from kikishell.errors import KikiError
from kikishell.shell.fences import strip_fences_from_chunk, strip_markdown_fences
from kikishell.utils.text import truncate_preview

logger = logging.getLogger(__name__)

# Past questions are indexed with at most this many characters.
USAGE_MAX_CHARS = 8000


def run_ask(
    question: str,
    config: Config,
    session: Session,
    assembler: ContextAssembler,
    system_prompt: str | None = None,
) -> AskResult | None:
    """Ask, print the answer and record it.

    Failures are reported as one line on the log and return None.
    """

    def on_text(piece: str) -> None:
        if session.no_fence:
            piece = strip_fences_from_chunk(piece)
        sys.stdout.write(piece)
        sys.stdout.flush()

    now = datetime.now().astimezone().isoformat(timespec="seconds")
    try:
        with interrupt_scope(config.timeout) as scope:
            result = assembler.ask(
                question,
                session,
                system_prompt=system_prompt,
                on_text=on_text if session.stream else None,
                scope=scope,
            )
    except KikiError as e:
        logger.error(f"LLM error: {e}")
        hint = capacity_hint(session)
        if hint:
            logger.error(hint)
        return None

    answer = result.answer
    if session.no_fence:
        answer = strip_markdown_fences(answer)
    if not session.stream:
        print(answer)
    session.last_answer = answer
    if result.chunked:
        logger.debug(f"Answered from {result.chunks} parts in {result.calls} calls")

    if config.history_enabled:
        history.append(
            config.history_path,
            history.HistoryRecord(
                time=now,
                endpoint=config.endpoint,
                profile=session.profile,
                model=config.model,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
                stream=session.stream,
                system_prompt=result.system_prompt,
                prompt=question,
                ctx=dict(session.ctx),
                files=result.files,
                file_hashes=result.hashes,
                cwd=os.getcwd(),
                response_preview=truncate_preview(answer, config.history_preview),
                chunked=result.chunked,
            ),
        )

    if session.index.enabled:
        session.index.add_text(f"usage:{now}:ask", f"[ask] {question}", USAGE_MAX_CHARS)
    return result
