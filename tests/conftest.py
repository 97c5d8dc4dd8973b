"""
Pytest configuration and fixtures.

Provides common test fixtures for all test modules.
"""

from typing import Callable, Generator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from cefr_grader.config import Settings
from cefr_grader.models import GatewayResponse, GenerationMetrics, QuestionType, ResponseSubmission
from cefr_grader.registry import ModelRegistry
from cefr_grader.tasks import DICTATION_PHRASE, SPEAKING_PLACEHOLDER, get_task


# ==============================================================================
# Sample Submission Fixtures
# ==============================================================================


@pytest.fixture
def sample_email() -> str:
    """A complete email response covering apology, reason and new date."""
    return (
        "Dear Global Innovations team, I sincerely apologize for missing the deadline on "
        "your project. A technical issue with our deployment pipeline delayed the final "
        "delivery. We have resolved the problem and will deliver the completed work this "
        "Friday. Thank you for your patience and understanding."
    )


@pytest.fixture
def sample_summary() -> str:
    """A short summary of the supply chain article."""
    return (
        "AI is transforming supply chain management by predicting demand and optimizing "
        "inventory. Retailers report lower inventory costs and faster delivery. Success "
        "requires investment in data infrastructure and training. Companies that adopt "
        "these tools early gain a clear competitive advantage."
    )


@pytest.fixture
def exam_submissions(sample_email: str, sample_summary: str) -> list[ResponseSubmission]:
    """All four tasks, in exam order."""
    return [
        ResponseSubmission(
            question_type=QuestionType.EMAIL,
            prompt=get_task(QuestionType.EMAIL).prompt,
            user_response=sample_email,
        ),
        ResponseSubmission(
            question_type=QuestionType.SUMMARIZE,
            prompt=get_task(QuestionType.SUMMARIZE).prompt,
            user_response=sample_summary,
        ),
        ResponseSubmission(
            question_type=QuestionType.DICTATION,
            prompt=get_task(QuestionType.DICTATION).prompt,
            user_response=DICTATION_PHRASE,
        ),
        ResponseSubmission(
            question_type=QuestionType.SPEAKING,
            prompt=get_task(QuestionType.SPEAKING).prompt,
            user_response=SPEAKING_PLACEHOLDER,
        ),
    ]


# ==============================================================================
# Model Reply Fixtures
# ==============================================================================


@pytest.fixture
def sample_rubric_reply() -> str:
    """Model reply in the single-task output format."""
    return (
        "FLUENCY: 4\n"
        "LEXICAL: 3.5\n"
        "GRAMMAR: 4.5\n"
        "TASK: 5\n"
        "FEEDBACK: [Clear, well organised email that covers every required point. "
        "Vary sentence openings for a more natural flow.]"
    )


@pytest.fixture
def sample_exam_reply() -> str:
    """Model reply in the exam output format."""
    return (
        "OVERALL_SCORE: C1\n"
        "EXPLANATION: The candidate writes fluent, well-structured professional English. "
        "The dictation was exact and the summary captured every key point.\n"
        "\n"
        "Additional notes that should not be part of the explanation."
    )


def _gateway_response(text: str) -> GatewayResponse:
    return GatewayResponse(
        model_key="claude-3-5-sonnet-20241022",
        model_name="Claude 3.5 Sonnet",
        provider="Anthropic",
        text=text,
        metrics=GenerationMetrics(time_to_first_chunk_ms=120.0, total_time_ms=900.0, chunk_count=12),
    )


@pytest.fixture
def make_gateway_response() -> Callable[[str], GatewayResponse]:
    """Factory wrapping reply text as a completed gateway response."""
    return _gateway_response


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with mocked values."""
    return Settings(
        gateway_api_key="test-api-key-for-testing",
        gateway_base_url="https://test.api.local/v1/",
        default_model_key="claude-3-5-sonnet-20241022",
        gateway_timeout_seconds=5.0,
        heuristic_delay_seconds=0.0,
    )


# ==============================================================================
# Mock Fixtures
# ==============================================================================


@pytest.fixture
def mock_gateway(sample_rubric_reply: str) -> Generator[MagicMock, None, None]:
    """Mock the gateway client to avoid actual API calls."""
    with patch("cefr_grader.grading.engine.GatewayClient") as mock_class:
        mock_instance = MagicMock()
        mock_instance.generate = AsyncMock(return_value=_gateway_response(sample_rubric_reply))
        mock_instance.health_check = AsyncMock(return_value=True)
        mock_instance.aclose = AsyncMock()
        mock_instance.registry = ModelRegistry()
        mock_class.return_value = mock_instance
        yield mock_instance
