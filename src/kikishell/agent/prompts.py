"""Prompt templates for the reduction pass and the shell."""

CHUNK_PROMPT = """[PART {index}/{total}]
{chunk}

Your task: read the part above and summarise the key facts, metrics, errors, \
likely causes and candidate fixes in at most 10 lines. Summary only, no commentary.
"""

CHUNK_UPDATE_PROMPT = """[PART {index}/{total}]
{chunk}

[CURRENT SUMMARY]
{summary}

Your task: keep the current summary, add what the new part contributes and \
drop duplicates. At most 12 lines. Summary only, no commentary.
"""

FINAL_PROMPT = """Below is a summary of a long input that was read in several parts.

[SUMMARY]
{summary}

Using this summary, answer the user's original question:
{question}
"""

RETRIEVAL_HEADER = "\n\n---\nRetrieved reference excerpts:\n\n"

ATTACHMENT_HEADER = (
    "\n\n---\nAttached file contents follow. Base your analysis and answer on them.\n\n"
)

NO_FENCE_RULES = """

[Output Rules]
- Never wrap output in ``` markdown code fences (no ```yaml either).
- Output plain text only.
"""
