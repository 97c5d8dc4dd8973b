"""Request and response bodies for the grading API (camelCase on the wire)."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from cefr_grader.models import (
    CEFRBand,
    ExamResult,
    ModelConfig,
    QuestionType,
    ResponseSubmission,
    RubricScore,
)
from cefr_grader.tasks import TaskDefinition


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GradeRequest(_CamelModel):
    """Body of POST /api/grade."""

    user_response: str = Field(..., min_length=1)
    question_type: QuestionType
    prompt: str | None = None

    def to_submission(self) -> ResponseSubmission:
        return ResponseSubmission(
            question_type=self.question_type,
            prompt=self.prompt or "",
            user_response=self.user_response,
        )


class ExamItem(_CamelModel):
    """One task of an exam submission."""

    question_type: QuestionType
    prompt: str | None = None
    user_response: str = ""

    def to_submission(self) -> ResponseSubmission:
        return ResponseSubmission(
            question_type=self.question_type,
            prompt=self.prompt or "",
            user_response=self.user_response,
        )


class ExamRequest(_CamelModel):
    """Body of POST /api/grade/exam."""

    responses: list[ExamItem] = Field(..., min_length=1)


class GradeResponse(_CamelModel):
    fluency: float
    lexical: float
    grammar: float
    task: float
    feedback: str

    @classmethod
    def from_score(cls, score: RubricScore) -> "GradeResponse":
        return cls(
            fluency=score.fluency,
            lexical=score.lexical,
            grammar=score.grammar,
            task=score.task,
            feedback=score.feedback,
        )


class ExamResponse(_CamelModel):
    overall_score: CEFRBand
    explanation: str

    @classmethod
    def from_result(cls, result: ExamResult) -> "ExamResponse":
        return cls(overall_score=result.overall_score, explanation=result.explanation)


class ModelInfo(_CamelModel):
    key: str
    name: str
    provider: str
    gateway_id: str

    @classmethod
    def from_config(cls, config: ModelConfig) -> "ModelInfo":
        return cls(**config.model_dump())


class ModelsResponse(_CamelModel):
    default: str
    models: list[ModelInfo]


class TaskInfo(_CamelModel):
    question_type: QuestionType
    title: str
    instruction: str
    content: str

    @classmethod
    def from_task(cls, task: TaskDefinition) -> "TaskInfo":
        return cls(**task.model_dump())
