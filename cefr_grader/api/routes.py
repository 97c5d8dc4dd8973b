"""Grading API endpoints."""

import logging

from fastapi import APIRouter, Depends, Request

from cefr_grader.api.schemas import (
    ExamRequest,
    ExamResponse,
    GradeRequest,
    GradeResponse,
    ModelInfo,
    ModelsResponse,
    TaskInfo,
)
from cefr_grader.config import Settings
from cefr_grader.grading import GradingEngine
from cefr_grader.tasks import EXAM_TASKS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["grading"])

# Client-error message per endpoint, used by the validation handler.
VALIDATION_MESSAGES = {
    "/api/grade": "Missing required fields",
    "/api/grade/exam": "Missing or invalid exam responses",
}


def get_engine(request: Request) -> GradingEngine:
    return request.app.state.engine


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.post("/grade", response_model=GradeResponse)
async def grade_response(
    req: GradeRequest,
    engine: GradingEngine = Depends(get_engine),
) -> GradeResponse:
    """Score one task submission on fluency, lexical, grammar and task."""
    logger.info("Grading %s response (%d chars)", req.question_type.value, len(req.user_response))
    score = await engine.grade_response(req.to_submission())
    return GradeResponse.from_score(score)


@router.post("/grade/exam", response_model=ExamResponse)
async def grade_exam(
    req: ExamRequest,
    engine: GradingEngine = Depends(get_engine),
) -> ExamResponse:
    """Classify a complete exam on the CEFR scale."""
    logger.info("Grading exam with %d responses", len(req.responses))
    result = await engine.grade_exam([item.to_submission() for item in req.responses])
    return ExamResponse.from_result(result)


@router.get("/models", response_model=ModelsResponse)
async def list_models(
    engine: GradingEngine = Depends(get_engine),
    settings: Settings = Depends(get_app_settings),
) -> ModelsResponse:
    """List the model registry and the model used for grading."""
    return ModelsResponse(
        default=settings.default_model_key,
        models=[ModelInfo.from_config(m) for m in engine.registry.list_models()],
    )


@router.get("/tasks", response_model=list[TaskInfo])
async def list_tasks() -> list[TaskInfo]:
    """The four exam tasks, in exam order."""
    return [TaskInfo.from_task(task) for task in EXAM_TASKS]


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}
