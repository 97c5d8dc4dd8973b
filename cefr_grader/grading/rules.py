"""
Canonical rule set shared by the heuristic grader and the exam classifier.

Keeping the vocabulary lists, task markers and dictation thresholds here means
the single-task and whole-exam fallbacks cannot drift apart.
"""

import re

from cefr_grader.grading.similarity import similarity, split_words
from cefr_grader.models import QuestionType

PROFESSIONAL_VOCABULARY: tuple[str, ...] = (
    "professional",
    "apologize",
    "deadline",
    "client",
    "technical",
    "delivery",
    "performance",
    "expectations",
    "management",
    "strategy",
    "analysis",
    "implementation",
)

# The exam classifier also rewards the summary article's domain terms.
EXAM_VOCABULARY: tuple[str, ...] = PROFESSIONAL_VOCABULARY + (
    "ai",
    "artificial intelligence",
    "supply chain",
    "inventory",
    "costs",
)

DICTATION_REFERENCE = (
    "quarterly earnings exceeded expectations due to strong performance in the apac region"
)

APOLOGY_MARKER = re.compile(r"sorry|apologize|regret", re.IGNORECASE)
EXPLANATION_MARKER = re.compile(r"technical|issue|problem|delay", re.IGNORECASE)
NEW_DATE_MARKER = re.compile(r"friday|date|deadline", re.IGNORECASE)
KEY_TERM_MARKER = re.compile(r"ai|artificial intelligence|supply chain|inventory|cost", re.IGNORECASE)

_SENTENCE_BREAK = re.compile(r"[.!?]+")

SUMMARY_MIN_WORDS = 30
SUMMARY_MAX_WORDS = 100

# (similarity must exceed, rubric task score, exam completion points)
DICTATION_BANDS: tuple[tuple[float, int, int], ...] = (
    (0.8, 5, 3),
    (0.6, 4, 2),
    (0.4, 3, 1),
)

SPEAKING_EXAM_POINTS = 2


def word_count(text: str) -> int:
    """Whitespace-separated tokens of the trimmed text (at least 1)."""
    return len(split_words(text.strip()))


def sentence_count(text: str) -> int:
    """Non-empty segments between `.`, `!` and `?` runs."""
    return sum(1 for segment in _SENTENCE_BREAK.split(text) if segment.strip())


def vocabulary_hits(text: str, vocabulary: tuple[str, ...] = PROFESSIONAL_VOCABULARY) -> int:
    """Number of vocabulary entries found as case-insensitive substrings."""
    lowered = text.lower()
    return sum(1 for word in vocabulary if word in lowered)


def email_markers(text: str) -> int:
    """Count of apology, delay-explanation and new-date markers present (0-3)."""
    return sum(
        1 for marker in (APOLOGY_MARKER, EXPLANATION_MARKER, NEW_DATE_MARKER) if marker.search(text)
    )


def has_key_terms(text: str) -> bool:
    return KEY_TERM_MARKER.search(text) is not None


def summary_length_ok(words: int) -> bool:
    return SUMMARY_MIN_WORDS <= words <= SUMMARY_MAX_WORDS


def dictation_similarity(text: str) -> float:
    """Similarity of the lowercased transcription to the reference phrase."""
    return similarity(text.lower(), DICTATION_REFERENCE)


def dictation_band(text: str) -> tuple[int, int] | None:
    """
    Rubric task score and exam points for a dictation attempt.

    Returns None when the similarity is at or below the lowest threshold.
    """
    ratio = dictation_similarity(text)
    for threshold, task_score, exam_points in DICTATION_BANDS:
        if ratio > threshold:
            return task_score, exam_points
    return None


def exam_task_points(question_type: QuestionType, text: str) -> int:
    """Task-completion points one response contributes to the exam tally."""
    if question_type is QuestionType.EMAIL:
        return email_markers(text)
    if question_type is QuestionType.SUMMARIZE:
        points = 2 if has_key_terms(text) else 1
        if summary_length_ok(word_count(text)):
            points += 1
        return points
    if question_type is QuestionType.DICTATION:
        band = dictation_band(text)
        return band[1] if band else 0
    return SPEAKING_EXAM_POINTS
