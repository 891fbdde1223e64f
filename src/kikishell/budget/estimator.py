"""Cheap token estimation without a tokenizer."""

DEFAULT_CHARS_PER_TOKEN = 4


class HeuristicEstimator:
    """Estimate tokens from the number of Unicode codepoints.

    Counting codepoints rather than bytes keeps the estimate stable for
    mixed-script text. The divisor is deliberately low so that estimates
    err on the large side.
    """

    def __init__(self, chars_per_token: int = DEFAULT_CHARS_PER_TOKEN):
        if chars_per_token < 1:
            raise ValueError("chars_per_token must be at least 1")
        self.chars_per_token = chars_per_token

    def estimate(self, text: str) -> int:
        text = text.strip() if text else ""
        if not text:
            return 0
        return -(-len(text) // self.chars_per_token)


_DEFAULT = HeuristicEstimator()


def estimate_tokens(text: str) -> int:
    """Estimate the token count of text with the default heuristic."""
    return _DEFAULT.estimate(text)
