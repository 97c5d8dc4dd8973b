"""
Pydantic models for the CEFR grader.

These models define the strict schemas for:
- Task submissions and the four question types
- Rubric scores and whole-exam CEFR results
- Model registry entries and gateway generation metrics
- The internal success/fallback grading outcome

All models are frozen: they are created once per request and never mutated.
"""

import math
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


# ==============================================================================
# Enumerations
# ==============================================================================


class QuestionType(str, Enum):
    """The four exam task types."""

    EMAIL = "email"
    SUMMARIZE = "summarize"
    DICTATION = "dictation"
    SPEAKING = "speaking"


_BAND_DESCRIPTIONS = {
    "A1": "Beginner - Basic phrases, very limited vocabulary",
    "A2": "Elementary - Simple sentences, basic communication",
    "B1": "Intermediate - Can handle most situations, good basic communication",
    "B2": "Upper-Intermediate - Effective communication, good vocabulary and grammar",
    "C1": "Advanced - Fluent and sophisticated language use",
    "C2": "Proficient - Near-native level proficiency",
}


class CEFRBand(str, Enum):
    """CEFR proficiency bands, lowest first."""

    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"
    C2 = "C2"

    @property
    def description(self) -> str:
        """Human-readable label for the band."""
        return _BAND_DESCRIPTIONS[self.value]


class GradingPath(str, Enum):
    """Which pipeline produced a result."""

    SUCCESS = "success"  # Remote model reply, parsed
    FALLBACK = "fallback"  # Deterministic heuristics


# ==============================================================================
# Submission Models
# ==============================================================================


class ResponseSubmission(BaseModel):
    """
    One task attempt by a candidate.

    For the speaking task `user_response` is a fixed placeholder standing in
    for the transcript, which is never available.
    """

    model_config = ConfigDict(frozen=True)

    question_type: QuestionType = Field(..., description="Task type")

    prompt: str = Field(default="", description="Task instruction shown to the candidate")

    user_response: str = Field(..., description="Candidate's answer text")


# ==============================================================================
# Result Models
# ==============================================================================

MIN_SCORE = 1.0
MAX_SCORE = 5.0
DEFAULT_SCORE = 3.0


def quantize_score(value: float) -> float:
    """
    Clamp a dimension score to [1, 5] and round to the nearest half point.

    Halves round up (3.25 -> 3.5), so `x * 2` is rounded with floor(x + 0.5)
    rather than Python's banker's rounding.
    """
    clamped = min(MAX_SCORE, max(MIN_SCORE, value))
    return math.floor(clamped * 2 + 0.5) / 2


class RubricScore(BaseModel):
    """
    Result of grading a single task on the four rubric dimensions.

    Every dimension lies in [1, 5] at half-point granularity.
    """

    model_config = ConfigDict(frozen=True)

    fluency: float = Field(..., ge=MIN_SCORE, le=MAX_SCORE, description="Fluency and coherence")
    lexical: float = Field(..., ge=MIN_SCORE, le=MAX_SCORE, description="Lexical resource")
    grammar: float = Field(..., ge=MIN_SCORE, le=MAX_SCORE, description="Grammatical range and accuracy")
    task: float = Field(..., ge=MIN_SCORE, le=MAX_SCORE, description="Task achievement")
    feedback: str = Field(..., description="One to three sentences of feedback")

    @field_validator("fluency", "lexical", "grammar", "task")
    @classmethod
    def validate_half_points(cls, v: float) -> float:
        """Reject scores that are not multiples of 0.5."""
        if (v * 2) != int(v * 2):
            raise ValueError(f"Score {v} is not a multiple of 0.5")
        return float(v)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def average(self) -> float:
        """Mean of the four dimensions."""
        return (self.fluency + self.lexical + self.grammar + self.task) / 4


class ExamResult(BaseModel):
    """Whole-exam CEFR classification."""

    model_config = ConfigDict(frozen=True)

    overall_score: CEFRBand = Field(..., description="Overall CEFR band")
    explanation: str = Field(..., description="Two to three sentences explaining the band")


# ==============================================================================
# Gateway Models
# ==============================================================================


class ModelConfig(BaseModel):
    """A model registry entry."""

    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    provider: str
    gateway_id: str = Field(..., description="Provider-qualified identifier, e.g. 'openai/gpt-4o'")


class GenerationMetrics(BaseModel):
    """Timing of one streaming generation call."""

    model_config = ConfigDict(frozen=True)

    time_to_first_chunk_ms: float | None = Field(
        default=None,
        description="Milliseconds until the first non-empty chunk; None if none arrived",
    )
    total_time_ms: float = Field(..., ge=0)
    chunk_count: int = Field(default=0, ge=0)


class GatewayResponse(BaseModel):
    """Full text of a completed generation plus the model that produced it."""

    model_config = ConfigDict(frozen=True)

    model_key: str
    model_name: str
    provider: str
    text: str
    metrics: GenerationMetrics


class GradingOutcome(BaseModel):
    """
    Tagged result of one grading call.

    The tag never reaches HTTP callers; it exists for logging, the CLI and tests.
    """

    model_config = ConfigDict(frozen=True)

    path: GradingPath
    result: RubricScore | ExamResult
    metrics: GenerationMetrics | None = None

    @property
    def is_fallback(self) -> bool:
        return self.path is GradingPath.FALLBACK


# ==============================================================================
# Display Helpers
# ==============================================================================


class ScoreTier(str, Enum):
    """Colour-coding tier for a rubric dimension."""

    EXCELLENT = "excellent"
    GOOD = "good"
    NEEDS_WORK = "needs_work"


def rating_tier(score: float) -> ScoreTier:
    """Map a dimension score to its display tier (4-5 excellent, 3 good)."""
    rounded = math.floor(score + 0.5)
    if rounded >= 4:
        return ScoreTier.EXCELLENT
    if rounded >= 3:
        return ScoreTier.GOOD
    return ScoreTier.NEEDS_WORK
