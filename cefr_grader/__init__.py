"""
CEFR Grader - hybrid LLM and heuristic grading for English proficiency exams.

This package scores candidate submissions on a four-dimension rubric and
classifies whole exams on the CEFR scale, using a remote language model
when available and deterministic heuristics when it is not.
"""

__version__ = "1.0.0"
__author__ = "CEFR Grader Team"
