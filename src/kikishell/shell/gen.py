"""Generate a code file from a prompt."""

import logging
import sys
from pathlib import Path
from typing import Callable, Optional

from kikishell.agent.assembler import CompletionBackend
from kikishell.agent.cancel import RequestScope
from kikishell.agent.session import Session
from kikishell.config import Config
from kikishell.errors import CompletionError, InputError
from kikishell.llm.types import ChatMessage
from kikishell.shell.fences import strip_markdown_fences
from kikishell.utils.paths import expand_path

logger = logging.getLogger(__name__)


def confirm_save(path: str) -> bool:
    """Ask on the terminal whether to write path; piped stdin never confirms."""
    if not sys.stdin.isatty():
        logger.error("gen: non-interactive stdin, not saving without confirmation")
        return False
    answer = input(f"save to {path} ? [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def write_file(path: str, content: str) -> Path:
    target = expand_path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    return target


def generate_code(
    prompt: str,
    config: Config,
    session: Session,
    client: CompletionBackend,
    scope: RequestScope | None = None,
) -> str:
    """One non-streaming call with the code-only system prompt."""
    system = session.system_prompt(config, config.gen_system_prompt)
    try:
        reply = client.complete(
            [ChatMessage("system", system), ChatMessage("user", prompt)],
            model=config.model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            stream=False,
            scope=scope,
        )
    except CompletionError as e:
        observed = e.observed_budget
        if observed:
            session.budget.observe(observed)
        raise

    code = reply.strip()
    if session.no_fence:
        code = strip_markdown_fences(code)
    return code


def gen(
    path: str,
    prompt: str,
    config: Config,
    session: Session,
    client: CompletionBackend,
    confirm: Callable[[str], bool] = confirm_save,
    scope: RequestScope | None = None,
) -> Optional[Path]:
    """Generate code for prompt, show it, and save it to path once confirmed.

    A saved file is also indexed as ``gen:<path>`` so later questions can
    refer to it.

    Returns:
        The written path, or None when the user declined

    Raises:
        InputError: empty path or prompt
        CompletionError: the completion call failed
    """
    path = path.strip()
    if not path:
        raise InputError("gen: output path is empty")
    prompt = prompt.strip()
    if not prompt:
        raise InputError("gen: prompt is empty")

    code = generate_code(prompt, config, session, client, scope)
    print(code)

    if not confirm(path):
        print("(cancelled)")
        return None

    target = write_file(path, code)
    print(f"saved: {target}")
    session.index.add_text(f"gen:{path}", code, config.rag_max_chars)
    return target
