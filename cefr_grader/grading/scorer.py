"""
Response parser for model grading output.

Extracts rubric scores or a CEFR band from the line-oriented reply requested
by the prompt builder. Parsing is tolerant: a missing or malformed field is
replaced by its default, and the parser never raises for any input text.
"""

import logging
import re

from cefr_grader.grading.prompt_builder import (
    EXPLANATION_LABEL,
    FEEDBACK_LABEL,
    FLUENCY_LABEL,
    GRAMMAR_LABEL,
    LEXICAL_LABEL,
    OVERALL_SCORE_LABEL,
    TASK_LABEL,
)
from cefr_grader.models import DEFAULT_SCORE, CEFRBand, ExamResult, RubricScore, quantize_score

logger = logging.getLogger(__name__)

DEFAULT_BAND = CEFRBand.B2
DEFAULT_FEEDBACK = "Assessment completed successfully."

# Label, optional markdown emphasis, colon, optional emphasis/bracket.
_LABEL_PREFIX = r"\b{label}\b\**[ \t]*:\s*\**[ \t]*\[?[ \t]*"

# Trailing quote/bracket characters left over from the "[...]" placeholders.
_WRAPPER_CHARS = "[]\"'"


def _label_pattern(label: str, value: str) -> re.Pattern[str]:
    return re.compile(_LABEL_PREFIX.format(label=label) + value, re.IGNORECASE)


_NUMBER = r"(-?\d+(?:\.\d+)?)"
_TEXT = r"\n?[ \t]*(\S[\s\S]*?)(?:\n\s*\n|\Z)"


class ResponseParser:
    """
    Parses model replies into RubricScore and ExamResult.

    Per-field policy:
    1. Scores: first number after the label; default 3 when absent
    2. Scores are clamped to [1, 5] and rounded to the nearest half point
    3. CEFR band: first A1-C2 token after the label; default B2
    4. Free text: up to the first blank line, wrapper quotes/brackets stripped
    """

    SCORE_PATTERNS: dict[str, re.Pattern[str]] = {
        "fluency": _label_pattern(FLUENCY_LABEL, _NUMBER),
        "lexical": _label_pattern(LEXICAL_LABEL, _NUMBER),
        "grammar": _label_pattern(GRAMMAR_LABEL, _NUMBER),
        "task": _label_pattern(TASK_LABEL, _NUMBER),
    }
    FEEDBACK_PATTERN = _label_pattern(FEEDBACK_LABEL, _TEXT)
    BAND_PATTERN = _label_pattern(OVERALL_SCORE_LABEL, r"([A-C][12])(?![0-9])")
    EXPLANATION_PATTERN = _label_pattern(EXPLANATION_LABEL, _TEXT)

    def parse_rubric(self, response: str) -> RubricScore:
        """
        Parse a single-task grading reply.

        Args:
            response: Raw model text.

        Returns:
            RubricScore with every dimension present.
        """
        scores = {
            dimension: quantize_score(self._extract_score(pattern, response, dimension))
            for dimension, pattern in self.SCORE_PATTERNS.items()
        }
        feedback = self._extract_text(self.FEEDBACK_PATTERN, response) or DEFAULT_FEEDBACK
        return RubricScore(feedback=feedback, **scores)

    def parse_exam(self, response: str) -> ExamResult:
        """
        Parse a whole-exam grading reply.

        Args:
            response: Raw model text.

        Returns:
            ExamResult with a valid CEFR band.
        """
        match = self.BAND_PATTERN.search(response)
        if match:
            band = CEFRBand(match.group(1).upper())
        else:
            logger.debug("No %s in model reply; defaulting to %s", OVERALL_SCORE_LABEL, DEFAULT_BAND.value)
            band = DEFAULT_BAND

        explanation = self._extract_text(self.EXPLANATION_PATTERN, response) or DEFAULT_FEEDBACK
        return ExamResult(overall_score=band, explanation=explanation)

    @staticmethod
    def _extract_score(pattern: re.Pattern[str], response: str, dimension: str) -> float:
        match = pattern.search(response)
        if not match:
            logger.debug("No score for %s in model reply; defaulting to %s", dimension, DEFAULT_SCORE)
            return DEFAULT_SCORE
        return float(match.group(1))

    @staticmethod
    def _extract_text(pattern: re.Pattern[str], response: str) -> str:
        match = pattern.search(response)
        if not match:
            return ""
        return match.group(1).strip().strip(_WRAPPER_CHARS).strip()
