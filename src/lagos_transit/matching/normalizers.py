from functools import lru_cache


@lru_cache(maxsize=4096)
def normalize_text(text: str) -> str:
    """Normalize a stop name or query for comparison.

    Trims surrounding whitespace and lowercases. Inner whitespace and
    punctuation are left alone.

    Example: "  Ikeja Along " -> "ikeja along"
    """
    return text.strip().lower()


def is_blank(text: str | None) -> bool:
    """True for None, empty, or whitespace-only text."""
    return text is None or not text.strip()
