"""Token estimation.

Counts are an estimate (~4 characters per token), not the output of a real
tokenizer. They drive budgeting decisions only and must not be reported as
exact usage.
"""

from __future__ import annotations

import math

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Estimate tokens as ``ceil(len(text) / 4)``."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)
