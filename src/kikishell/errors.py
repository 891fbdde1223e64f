"""Exception types shared across kiki-shell."""

import re

_CONTEXT_SIZE_RE = re.compile(r"available context size \((\d+) tokens\)")


def parse_observed_budget(message: str) -> int | None:
    """Extract the server's context size from a rejection message.

    llama.cpp reports overflows as "... available context size (4096 tokens)".

    Returns:
        The reported size, or None when the message carries no such figure
    """
    if not message:
        return None
    match = _CONTEXT_SIZE_RE.search(message)
    if match is None:
        return None
    size = int(match.group(1))
    return size if size > 0 else None


class KikiError(Exception):
    """Base class for errors reported to the user as one diagnostic line."""


class InputError(KikiError):
    """Bad user input: empty path or prompt, unreadable or binary file."""


class CompletionError(KikiError):
    """The completion service failed or rejected a request."""

    @property
    def observed_budget(self) -> int | None:
        return parse_observed_budget(str(self))


class RequestCancelled(KikiError):
    """The request was interrupted by the user or ran past its deadline."""
