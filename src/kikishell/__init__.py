"""kiki: a shell that asks a local LLM within its context size."""
