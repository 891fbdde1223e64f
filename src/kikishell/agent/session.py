"""Per-shell session state passed explicitly to every operation."""

from dataclasses import dataclass, field

from kikishell.agent.prompts import NO_FENCE_RULES
from kikishell.budget import BudgetTracker
from kikishell.config import Config
from kikishell.errors import InputError
from kikishell.index import RetrievalIndex
from kikishell.scorers import get_scorer
from kikishell.utils.paths import expand_path


@dataclass
class Session:
    """Mutable state of one interactive or one-shot session."""

    index: RetrievalIndex
    budget: BudgetTracker = field(default_factory=BudgetTracker)
    files: list[str] = field(default_factory=list)
    profile: str = "fast"
    stream: bool = False
    no_fence: bool = True
    ctx: dict[str, str] = field(default_factory=dict)
    last_answer: str = ""

    @classmethod
    def from_config(cls, config: Config, index: RetrievalIndex | None = None) -> "Session":
        if index is None:
            index = RetrievalIndex(enabled=config.rag_enabled, scorer=get_scorer(config.rag_scorer))
        return cls(
            index=index,
            budget=BudgetTracker(
                target=config.ctx_target,
                observed=config.ctx_observed,
                headroom=config.headroom,
            ),
            profile=config.profile,
            stream=config.stream,
            no_fence=config.no_fence,
        )

    def attach(self, path: str) -> str:
        """Attach a file to every following question; returns the resolved path."""
        if not path or not path.strip():
            raise InputError("empty file path")
        resolved = expand_path(path)
        if not resolved.is_file():
            raise InputError(f"file not found: {resolved}")
        self.files.append(str(resolved))
        return str(resolved)

    def detach(self, number: int) -> str:
        """Remove the attachment at 1-based position number."""
        if number < 1 or number > len(self.files):
            raise InputError(f"invalid file number: {number}")
        return self.files.pop(number - 1)

    def set_context(self, key: str, value: str) -> None:
        key = key.strip()
        if key:
            self.ctx[key] = value.strip()

    def system_prompt(self, config: Config, override: str = "") -> str:
        """System prompt with output rules and the [Context] section."""
        prompt = override.strip() or config.system_prompt
        if self.no_fence:
            prompt = prompt.strip() + NO_FENCE_RULES

        if self.ctx:
            lines = [prompt, "", "[Context]"]
            lines.extend(f"- {key}: {self.ctx[key]}" for key in sorted(self.ctx))
            prompt = "\n".join(lines) + "\n"
        return prompt
