"""
Deterministic fallback scorers.

Used whenever the remote model cannot be reached. Both components are pure,
synchronous and never raise for well-formed submissions: they are the
system's failure-recovery path.
"""

import logging
import re
from typing import Sequence

from cefr_grader.grading import rules
from cefr_grader.models import CEFRBand, ExamResult, QuestionType, ResponseSubmission, RubricScore

logger = logging.getLogger(__name__)

_STARTS_UPPERCASE = re.compile(r"^[A-Z]")
_ENDS_WITH_TERMINATOR = re.compile(r"[.!?]$")

BASE_SCORE = 3
MAX_SCORE = 5

_TASK_HINTS = {
    QuestionType.EMAIL: "ensure all email components are included (apology, explanation, new date)",
    QuestionType.SUMMARIZE: "focus on capturing key points more comprehensively",
}
_DEFAULT_TASK_HINT = "better alignment with task objectives needed"


class HeuristicGrader:
    """
    Scores one response on fluency, lexical resource, grammar and task
    achievement from length, punctuation and keyword rules.

    Each dimension starts at 3 and earns up to two bonus points (three for the
    email task), capped at 5. Dictation replaces the task score outright with a
    value derived from similarity to the reference phrase.
    """

    def grade(self, user_response: str, question_type: QuestionType) -> RubricScore:
        words = rules.word_count(user_response)
        sentences = rules.sentence_count(user_response)
        words_per_sentence = words / max(sentences, 1)

        fluency = BASE_SCORE
        if 8 < words_per_sentence < 25:
            fluency += 1
        if sentences >= 3:
            fluency += 1

        lexical = BASE_SCORE
        if rules.vocabulary_hits(user_response) >= 2:
            lexical += 1
        if words >= 50:
            lexical += 1

        grammar = BASE_SCORE
        trimmed = user_response.strip()
        if _STARTS_UPPERCASE.search(trimmed):
            grammar += 1
        if _ENDS_WITH_TERMINATOR.search(trimmed):
            grammar += 1

        task = self._task_score(user_response, question_type, words)

        fluency, lexical, grammar, task = (
            min(MAX_SCORE, score) for score in (fluency, lexical, grammar, task)
        )

        logger.debug(
            "Heuristic scores for %s: fluency=%s lexical=%s grammar=%s task=%s",
            question_type.value,
            fluency,
            lexical,
            grammar,
            task,
        )

        return RubricScore(
            fluency=fluency,
            lexical=lexical,
            grammar=grammar,
            task=task,
            feedback=self.build_feedback(fluency, lexical, grammar, task, question_type),
        )

    def _task_score(self, user_response: str, question_type: QuestionType, words: int) -> int:
        task = BASE_SCORE
        if question_type is QuestionType.EMAIL:
            task += rules.email_markers(user_response)
        elif question_type is QuestionType.SUMMARIZE:
            if rules.has_key_terms(user_response):
                task += 1
            if rules.summary_length_ok(words):
                task += 1
        elif question_type is QuestionType.DICTATION:
            band = rules.dictation_band(user_response)
            if band is not None:
                task = band[0]
        # Speaking has no transcript to analyse.
        return task

    @staticmethod
    def build_feedback(
        fluency: float,
        lexical: float,
        grammar: float,
        task: float,
        question_type: QuestionType,
    ) -> str:
        """One clause per dimension, strong at 4 and above."""
        clauses = [
            "Well-structured and coherent response"
            if fluency >= 4
            else "Consider improving sentence flow and organization",
            "good use of professional vocabulary"
            if lexical >= 4
            else "expand vocabulary range for enhanced impact",
            "strong grammatical accuracy" if grammar >= 4 else "review grammar and sentence structure",
            "effectively addresses the task requirements"
            if task >= 4
            else _TASK_HINTS.get(question_type, _DEFAULT_TASK_HINT),
        ]
        return ", ".join(clauses) + "."


# ==============================================================================
# Exam Classification
# ==============================================================================

_BAND_EXPLANATIONS = {
    CEFRBand.B2: (
        "Demonstrates strong English proficiency with effective task completion, good "
        "vocabulary range, and appropriate professional communication across all sections."
    ),
    CEFRBand.B1: (
        "Shows competent English skills with generally successful task completion. Some "
        "areas for improvement in vocabulary range or response development."
    ),
    CEFRBand.A2: (
        "Basic English communication skills demonstrated. Can complete simple tasks but "
        "would benefit from developing vocabulary and fluency for professional contexts."
    ),
    CEFRBand.A1: (
        "Beginning level English skills. Requires significant development in vocabulary, "
        "grammar, and task completion for professional communication."
    ),
}


class HeuristicExamClassifier:
    """
    Aggregates the exam's responses into a CEFR band.

    The heuristics cannot distinguish anything above B2, so C1 and C2 are only
    ever produced by the remote model.
    """

    VOCABULARY_THRESHOLD = 3
    LENGTH_THRESHOLD = 40

    def classify(self, responses: Sequence[ResponseSubmission]) -> ExamResult:
        if not responses:
            raise ValueError("At least one response is required for exam classification")

        total_words = 0
        task_points = 0
        vocabulary = 0
        for response in responses:
            total_words += rules.word_count(response.user_response)
            vocabulary += rules.vocabulary_hits(response.user_response, rules.EXAM_VOCABULARY)
            task_points += rules.exam_task_points(response.question_type, response.user_response)

        average_words = total_words / len(responses)
        band = self.band_for(task_points, vocabulary, average_words)

        logger.debug(
            "Heuristic exam tally: task_points=%d vocabulary=%d avg_words=%.1f -> %s",
            task_points,
            vocabulary,
            average_words,
            band.value,
        )

        return ExamResult(overall_score=band, explanation=_BAND_EXPLANATIONS[band])

    @classmethod
    def band_for(cls, task_points: int, vocabulary: int, average_words: float) -> CEFRBand:
        """First matching rule wins, highest band first."""
        rich_vocabulary = vocabulary >= cls.VOCABULARY_THRESHOLD
        long_answers = average_words >= cls.LENGTH_THRESHOLD

        if task_points >= 10 and rich_vocabulary and long_answers:
            return CEFRBand.B2
        if task_points >= 7 and (rich_vocabulary or long_answers):
            return CEFRBand.B1
        if task_points >= 5:
            return CEFRBand.A2
        return CEFRBand.A1
