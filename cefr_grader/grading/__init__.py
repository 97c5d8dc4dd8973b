"""
Grading Engine Module.

Core grading logic: remote model grading with deterministic heuristic fallback.
"""

from cefr_grader.grading.engine import GradingEngine
from cefr_grader.grading.gateway import GatewayClient, GatewayError
from cefr_grader.grading.heuristics import HeuristicExamClassifier, HeuristicGrader
from cefr_grader.grading.prompt_builder import PromptBuilder
from cefr_grader.grading.scorer import ResponseParser
from cefr_grader.grading.similarity import similarity

__all__ = [
    "GatewayClient",
    "GatewayError",
    "GradingEngine",
    "HeuristicExamClassifier",
    "HeuristicGrader",
    "PromptBuilder",
    "ResponseParser",
    "similarity",
]
