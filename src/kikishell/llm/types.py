"""Request and message types for chat completions."""

from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str


@dataclass
class ChatRequest:
    """Body of a /v1/chat/completions request."""

    model: str
    messages: list[ChatMessage] = field(default_factory=list)
    temperature: float = 0.0
    max_tokens: int = 0
    stream: bool = False

    def to_payload(self) -> dict:
        payload = {
            "model": self.model,
            "messages": [asdict(m) for m in self.messages],
        }
        # Zero values are left for the server to default
        if self.temperature:
            payload["temperature"] = self.temperature
        if self.max_tokens:
            payload["max_tokens"] = self.max_tokens
        if self.stream:
            payload["stream"] = True
        return payload
