"""Interactive shell and the ask/gen workflows."""

from kikishell.shell.ask import run_ask
from kikishell.shell.fences import strip_fences_from_chunk, strip_markdown_fences
from kikishell.shell.gen import gen
from kikishell.shell.repl import Repl

__all__ = [
    "Repl",
    "gen",
    "run_ask",
    "strip_fences_from_chunk",
    "strip_markdown_fences",
]
