"""
Prompt builder for rubric and CEFR grading.

Constructs the assessor prompts and the strict output-format directive the
model must follow. The field labels defined here are the contract read back by
`cefr_grader.grading.scorer.ResponseParser`; change both together.
"""

from typing import Sequence

from cefr_grader.models import QuestionType, ResponseSubmission

# Output-format contract, shared with the response parser.
FLUENCY_LABEL = "FLUENCY"
LEXICAL_LABEL = "LEXICAL"
GRAMMAR_LABEL = "GRAMMAR"
TASK_LABEL = "TASK"
FEEDBACK_LABEL = "FEEDBACK"
OVERALL_SCORE_LABEL = "OVERALL_SCORE"
EXPLANATION_LABEL = "EXPLANATION"

RUBRIC_SCORE_LABELS: tuple[str, ...] = (FLUENCY_LABEL, LEXICAL_LABEL, GRAMMAR_LABEL, TASK_LABEL)


class PromptBuilder:
    """
    Builds grading prompts for a single task or a whole exam.

    The prompts are designed to:
    1. Anchor the model on a fixed 1-5 rubric (or the CEFR scale)
    2. Add task-specific criteria for the email, summary and dictation tasks
    3. End with a line-oriented output format that can be parsed without JSON
    """

    SYSTEM_PROMPT = """You are an expert English language assessor for professional workplace communication.

RULES:
1. Grade ONLY what the candidate wrote. Do not reward content that is not present.
2. Apply the rubric consistently: two identical responses MUST receive identical scores.
3. Follow the requested output format EXACTLY. Do not add headings, markdown or extra fields."""

    _TASK_CRITERIA = {
        QuestionType.EMAIL: (
            "For this EMAIL task, TASK ACHIEVEMENT requires: an apology to the client, a brief "
            "explanation of the delay (a technical issue), and a confident new delivery date "
            "(this Friday), in a professional tone."
        ),
        QuestionType.SUMMARIZE: (
            "For this SUMMARY task, TASK ACHIEVEMENT requires: the key points of the article "
            "(AI in supply chain management, demand prediction, inventory and cost reduction, "
            "investment requirements) in 3-4 concise sentences of the candidate's own words."
        ),
        QuestionType.DICTATION: (
            "For this DICTATION task, TASK ACHIEVEMENT measures how exactly the candidate "
            "reproduced the spoken sentence, word for word, including spelling."
        ),
    }

    @staticmethod
    def build_grading_prompt(
        user_response: str,
        question_type: QuestionType,
        original_prompt: str = "",
    ) -> str:
        """
        Build the prompt for grading one response.

        Args:
            user_response: The candidate's answer text.
            question_type: Which task was answered.
            original_prompt: The task instruction shown to the candidate.

        Returns:
            The formatted prompt.
        """
        task_criteria = PromptBuilder._TASK_CRITERIA.get(question_type, "")
        if task_criteria:
            task_criteria = f"\n{task_criteria}\n"

        return f"""You are evaluating a candidate's response to one task of an English proficiency assessment.

TASK TYPE: {question_type.value.upper()}
TASK PROMPT: "{original_prompt}"
CANDIDATE RESPONSE: "{user_response}"

RUBRIC (score each dimension from 1 to 5, half points allowed):
- FLUENCY: coherence, organisation and natural flow of sentences.
- LEXICAL: range, precision and appropriacy of vocabulary for a professional context.
- GRAMMAR: accuracy and range of grammatical structures, spelling and punctuation.
- TASK: how completely and appropriately the response fulfils the task.
{task_criteria}
Provide your assessment in this EXACT format:
{FLUENCY_LABEL}: [1-5]
{LEXICAL_LABEL}: [1-5]
{GRAMMAR_LABEL}: [1-5]
{TASK_LABEL}: [1-5]
{FEEDBACK_LABEL}: [1-3 sentences of specific, constructive feedback for the candidate]
"""

    @staticmethod
    def build_exam_prompt(responses: Sequence[ResponseSubmission]) -> str:
        """
        Build the prompt for classifying a complete exam on the CEFR scale.

        Args:
            responses: The candidate's submissions, in exam order.

        Returns:
            The formatted prompt.
        """
        lines: list[str] = [
            "You are an expert English language assessor evaluating a complete English "
            "proficiency exam.",
            f"The candidate has completed {len(responses)} different tasks testing various "
            "language skills.",
            "",
            "EXAM RESPONSES:",
        ]

        for index, response in enumerate(responses, start=1):
            lines.append("")
            lines.append(f"TASK {index} - {response.question_type.value.upper()}:")
            lines.append(f'PROMPT: "{response.prompt}"')
            lines.append(f'CANDIDATE RESPONSE: "{response.user_response}"')

        lines.append("")
        lines.append(PromptBuilder._EXAM_INSTRUCTIONS)
        return "\n".join(lines)

    _EXAM_INSTRUCTIONS = f"""Based on all responses, provide a comprehensive assessment:

1. Evaluate the candidate's overall English proficiency level using the CEFR scale:
   - A1 (Beginner): Basic phrases, very limited vocabulary
   - A2 (Elementary): Simple sentences, basic communication
   - B1 (Intermediate): Can handle most situations, good basic communication
   - B2 (Upper-Intermediate): Effective communication, good vocabulary and grammar
   - C1 (Advanced): Fluent and sophisticated language use
   - C2 (Proficient): Near-native level proficiency

2. Consider performance across all skill areas:
   - Writing skills (email and summary tasks)
   - Listening comprehension (dictation task)
   - Speaking ability (recorded response)
   - Task completion and appropriateness
   - Grammar and vocabulary range
   - Professional communication ability

3. Provide your assessment in this EXACT format:
{OVERALL_SCORE_LABEL}: [A1/A2/B1/B2/C1/C2]
{EXPLANATION_LABEL}: [2-3 sentences explaining the overall performance, highlighting key strengths and areas that led to this proficiency level. Be specific about which tasks showed strong or weak performance.]

Base your scoring on the candidate's ability to communicate effectively in professional English contexts."""

    @staticmethod
    def get_system_prompt() -> str:
        """Get the system prompt for grading."""
        return PromptBuilder.SYSTEM_PROMPT
