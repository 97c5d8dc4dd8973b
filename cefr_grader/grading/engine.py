"""
Grading engine - the core orchestrator.

Drives prompt building, the gateway call and response parsing for both
single-task and whole-exam grading, and falls back to the deterministic
heuristics when the gateway fails. Both paths return the same result shape.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from cefr_grader.config import Settings, get_settings
from cefr_grader.grading.gateway import GatewayClient, GatewayError
from cefr_grader.grading.heuristics import HeuristicExamClassifier, HeuristicGrader
from cefr_grader.grading.prompt_builder import PromptBuilder
from cefr_grader.grading.scorer import ResponseParser
from cefr_grader.models import (
    ExamResult,
    GradingOutcome,
    GradingPath,
    ResponseSubmission,
    RubricScore,
)
from cefr_grader.registry import ModelRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _GradingScope:
    """Everything that differs between single-task and whole-exam grading."""

    name: str
    build_prompt: Callable[[], str]
    max_tokens: int
    parse: Callable[[str], RubricScore | ExamResult]
    fallback: Callable[[], RubricScore | ExamResult]


class GradingEngine:
    """
    Main grading engine with heuristic fallback.

    Makes exactly one remote attempt per call. Any GatewayError switches to
    the heuristic path on the same validated input; other exceptions propagate.
    """

    def __init__(self, settings: Settings | None = None):
        """
        Initialize the grading engine.

        Args:
            settings: Configuration settings. Uses global settings if not provided.
        """
        self._settings = settings or get_settings()
        self._gateway = GatewayClient(self._settings)
        self._prompt_builder = PromptBuilder()
        self._response_parser = ResponseParser()
        self._heuristic_grader = HeuristicGrader()
        self._exam_classifier = HeuristicExamClassifier()

    @property
    def registry(self) -> ModelRegistry:
        return self._gateway.registry

    async def grade_response(self, submission: ResponseSubmission) -> RubricScore:
        """Grade one task submission on the four rubric dimensions."""
        outcome = await self.grade_response_outcome(submission)
        return outcome.result  # type: ignore[return-value]

    async def grade_exam(self, submissions: Sequence[ResponseSubmission]) -> ExamResult:
        """Classify a complete exam on the CEFR scale."""
        outcome = await self.grade_exam_outcome(submissions)
        return outcome.result  # type: ignore[return-value]

    async def grade_response_outcome(
        self,
        submission: ResponseSubmission,
        use_gateway: bool = True,
    ) -> GradingOutcome:
        """
        Grade one submission and report which path produced the result.

        Args:
            submission: The candidate's task attempt.
            use_gateway: When False, go straight to the heuristic grader.

        Returns:
            GradingOutcome wrapping a RubricScore.
        """
        scope = _GradingScope(
            name=f"response:{submission.question_type.value}",
            build_prompt=lambda: self._prompt_builder.build_grading_prompt(
                submission.user_response,
                submission.question_type,
                submission.prompt,
            ),
            max_tokens=self._settings.response_max_tokens,
            parse=self._response_parser.parse_rubric,
            fallback=lambda: self._heuristic_grader.grade(
                submission.user_response, submission.question_type
            ),
        )
        return await self._run(scope, use_gateway)

    async def grade_exam_outcome(
        self,
        submissions: Sequence[ResponseSubmission],
        use_gateway: bool = True,
    ) -> GradingOutcome:
        """
        Classify an exam and report which path produced the result.

        Args:
            submissions: The candidate's submissions, in exam order.
            use_gateway: When False, go straight to the heuristic classifier.

        Returns:
            GradingOutcome wrapping an ExamResult.
        """
        responses = tuple(submissions)
        scope = _GradingScope(
            name=f"exam:{len(responses)}",
            build_prompt=lambda: self._prompt_builder.build_exam_prompt(responses),
            max_tokens=self._settings.exam_max_tokens,
            parse=self._response_parser.parse_exam,
            fallback=lambda: self._exam_classifier.classify(responses),
        )
        return await self._run(scope, use_gateway)

    async def _run(self, scope: _GradingScope, use_gateway: bool) -> GradingOutcome:
        if use_gateway:
            try:
                reply = await self._gateway.generate(
                    self._settings.default_model_key,
                    scope.build_prompt(),
                    max_output_tokens=scope.max_tokens,
                    temperature=self._settings.grading_temperature,
                    system_prompt=self._prompt_builder.get_system_prompt(),
                )
            except GatewayError as e:
                logger.warning(
                    "Remote grading failed for %s (%s), using heuristics: %s",
                    scope.name,
                    "transient" if e.retryable else "permanent",
                    e,
                )
            else:
                result = scope.parse(reply.text)
                logger.info(
                    "Graded %s with %s in %.0fms",
                    scope.name,
                    reply.model_name,
                    reply.metrics.total_time_ms,
                )
                return GradingOutcome(path=GradingPath.SUCCESS, result=result, metrics=reply.metrics)

        if self._settings.heuristic_delay_seconds:
            await asyncio.sleep(self._settings.heuristic_delay_seconds)

        result = scope.fallback()
        logger.info("Graded %s with heuristics", scope.name)
        return GradingOutcome(path=GradingPath.FALLBACK, result=result)

    async def health_check(self) -> bool:
        """
        Check if the grading engine's remote path is operational.

        Returns:
            True if the gateway is reachable.
        """
        return await self._gateway.health_check()

    async def aclose(self) -> None:
        """Release the gateway's HTTP resources."""
        await self._gateway.aclose()
