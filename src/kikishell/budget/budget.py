"""Context budgets: target, observed and usable sizes."""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Room left for the system prompt, message framing and the reply.
DEFAULT_HEADROOM = 768
# Never plan requests smaller than this, however tight the server is.
DEFAULT_FLOOR = 256


@dataclass(frozen=True)
class Budget:
    """Usable size of a single request."""

    max_context: int
    headroom: int = DEFAULT_HEADROOM
    floor: int = DEFAULT_FLOOR

    @property
    def usable(self) -> int:
        return max(self.max_context - self.headroom, self.floor)


class BudgetTracker:
    """Track the declared and the observed context size of the server.

    ``target`` is what the user asked for (:ctx-size, LLM_CTX_TARGET).
    ``observed`` is learned from a rejection and reflects the running
    server, so it wins over the target once known.
    """

    def __init__(
        self,
        target: int = 0,
        observed: int = 0,
        headroom: int = DEFAULT_HEADROOM,
        floor: int = DEFAULT_FLOOR,
    ):
        self.target = max(target, 0)
        self.observed = max(observed, 0)
        self.headroom = headroom
        self.floor = floor

    @property
    def effective(self) -> int:
        """Context size to plan against, or 0 when nothing is known."""
        return self.observed or self.target

    def budget(self) -> Budget | None:
        if self.effective <= 0:
            return None
        return Budget(self.effective, headroom=self.headroom, floor=self.floor)

    def observe(self, size: int) -> None:
        """Record a context size reported by the server."""
        if size <= 0:
            return
        if size != self.observed:
            logger.debug(f"Observed context size: {self.observed or 'unset'} -> {size}")
        self.observed = size

    def set_target(self, size: int) -> None:
        self.target = max(size, 0)

    def needs_restart_hint(self) -> bool:
        """True when the server runs with less context than the user wants."""
        return self.target > 0 and 0 < self.observed < self.target
