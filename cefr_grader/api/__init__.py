"""
HTTP API Module.

Exposes single-task and whole-exam grading over FastAPI.
"""

from cefr_grader.api.app import create_app

__all__ = ["create_app"]
