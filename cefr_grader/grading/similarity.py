"""
Lexical overlap between a candidate's text and a reference phrase.
"""

import re

_WHITESPACE = re.compile(r"\s+")


def split_words(text: str) -> list[str]:
    """
    Split text on whitespace runs.

    An empty string yields the single empty token `[""]`, never an empty list,
    so callers can always divide by the word count.
    """
    return _WHITESPACE.split(text)


def similarity(a: str, b: str) -> float:
    """
    Fraction of the words of `a` that occur anywhere in `b`.

    The denominator is the longer of the two word lists, so extra words in
    either text lower the ratio. Membership only: order and repetition are
    ignored. Both texts should be case-normalised by the caller.

    Args:
        a: Candidate text.
        b: Reference text.

    Returns:
        Ratio in [0, 1].
    """
    words_a = split_words(a)
    words_b = split_words(b)
    reference = set(words_b)
    common = sum(1 for word in words_a if word in reference)
    return common / max(len(words_a), len(words_b))
