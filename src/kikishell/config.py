"""Runtime configuration read from the environment."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant. Answer concisely and accurately."
DEFAULT_GEN_SYSTEM_PROMPT = (
    "You are a code generator. Output only the raw code that was requested. "
    "No explanations, no extra sentences, no markdown code fences or backticks."
)

PROFILE_PROMPTS = {
    "fast": (
        "You are a concise and accurate assistant. Lead with the conclusion and "
        "add at most three bullet points if needed."
    ),
    "deep": (
        "You are a senior SRE / platform engineer. Structure answers as "
        "assumptions, causes, verification and actions. Flag anything uncertain."
    ),
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env(name: str) -> str:
    return os.environ.get(name, "").strip()


def env_str(name: str, default: str) -> str:
    return _env(name) or default


def env_int(name: str, default: int) -> int:
    value = _env(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring {name}={value!r}: not an integer")
        return default


def env_float(name: str, default: float) -> float:
    value = _env(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Ignoring {name}={value!r}: not a number")
        return default


def env_bool(name: str, default: bool) -> bool:
    value = _env(name).lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    return default


def kiki_home() -> Path:
    return Path.home() / ".kiki"


@dataclass
class Config:
    """Settings for one kiki run.

    Defaults suit a llama.cpp server on localhost; every field can be
    overridden through the environment (see ``from_env``).
    """

    base_url: str = ""
    host: str = "127.0.0.1"
    port: int = 8080
    model: str = "llama"
    temperature: float = 0.2
    max_tokens: int = 512
    timeout: int = 60

    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    gen_system_prompt: str = DEFAULT_GEN_SYSTEM_PROMPT
    profile: str = "fast"
    stream: bool = False

    ctx_target: int = 0
    ctx_observed: int = 0
    headroom: int = 768
    chars_per_token: int = 4

    history_enabled: bool = True
    history_path: Path = field(default_factory=lambda: kiki_home() / "history.jsonl")
    history_preview: int = 800

    file_max_bytes: int = 256 * 1024
    file_max_chars: int = 20000

    rag_enabled: bool = False
    rag_top_k: int = 3
    rag_max_chars: int = 2500
    rag_scorer: str = "substring"
    index_path: Path = field(default_factory=lambda: kiki_home() / "index.db")

    no_fence: bool = True

    @classmethod
    def from_env(cls) -> "Config":
        """Build a Config from LLM_* and KIKI_* environment variables."""
        d = cls()
        return cls(
            base_url=env_str("LLM_BASE_URL", d.base_url),
            host=env_str("LLM_HOST", d.host),
            port=env_int("LLM_PORT", d.port),
            model=env_str("LLM_MODEL", d.model),
            temperature=env_float("LLM_TEMP", d.temperature),
            max_tokens=env_int("LLM_MAX_TOKENS", d.max_tokens),
            timeout=env_int("LLM_TIMEOUT", d.timeout),
            system_prompt=env_str("LLM_SYSTEM_PROMPT", d.system_prompt),
            gen_system_prompt=env_str("LLM_GEN_SYSTEM_PROMPT", d.gen_system_prompt),
            profile=env_str("LLM_PROFILE", d.profile),
            stream=env_bool("LLM_STREAM", d.stream),
            ctx_target=env_int("LLM_CTX_TARGET", d.ctx_target),
            ctx_observed=env_int("LLM_CTX_OBSERVED", d.ctx_observed),
            headroom=env_int("KIKI_CTX_HEADROOM", d.headroom),
            chars_per_token=env_int("KIKI_CHARS_PER_TOKEN", d.chars_per_token),
            history_enabled=env_bool("LLM_HISTORY", d.history_enabled),
            history_path=Path(env_str("LLM_HISTORY_PATH", str(d.history_path))).expanduser(),
            history_preview=env_int("LLM_HISTORY_PREVIEW", d.history_preview),
            file_max_bytes=env_int("LLM_FILE_MAX_BYTES", d.file_max_bytes),
            file_max_chars=env_int("LLM_FILE_MAX_CHARS", d.file_max_chars),
            rag_enabled=env_bool("LLM_RAG", d.rag_enabled),
            rag_top_k=env_int("LLM_RAG_TOPK", d.rag_top_k),
            rag_max_chars=env_int("LLM_RAG_MAX_CHARS", d.rag_max_chars),
            rag_scorer=env_str("KIKI_RAG_SCORER", d.rag_scorer),
            index_path=Path(env_str("KIKI_INDEX_PATH", str(d.index_path))).expanduser(),
            no_fence=env_bool("KIKI_NOFENCE", d.no_fence),
        )

    @property
    def endpoint(self) -> str:
        if self.base_url.strip():
            return self.base_url.strip().rstrip("/") + "/v1/chat/completions"
        return f"http://{self.host}:{self.port}/v1/chat/completions"

    @property
    def server_address(self) -> str:
        return self.base_url.strip() or f"{self.host}:{self.port}"

    def apply_profile(self) -> None:
        """Adjust sampling settings for the active profile.

        ``fast`` keeps answers short and cool, ``deep`` allows longer and
        warmer answers, ``none`` leaves everything as configured.
        """
        profile = self.profile.strip().lower()
        if profile in ("", "none"):
            return

        if profile == "fast":
            self.temperature = min(self.temperature, 0.2)
            if self.max_tokens <= 0 or self.max_tokens > 384:
                self.max_tokens = 256
        elif profile == "deep":
            self.temperature = max(self.temperature, 0.3)
            if self.max_tokens < 768:
                self.max_tokens = 1024
        else:
            logger.warning(f"Unknown profile {self.profile!r}; using settings as configured")
            return

        if not self.system_prompt.strip():
            self.system_prompt = PROFILE_PROMPTS[profile]
