"""
Catalogue of the four exam tasks, in the order the candidate takes them.
"""

from pydantic import BaseModel, ConfigDict

from cefr_grader.models import QuestionType

SUMMARY_ARTICLE = """The Rise of AI in Supply Chain Management

Artificial Intelligence is revolutionizing supply chain management across industries. \
Companies are leveraging AI-powered analytics to predict demand patterns, optimize \
inventory levels, and reduce operational costs. Machine learning algorithms can process \
vast amounts of data from multiple sources, including weather patterns, economic \
indicators, and consumer behavior trends.

Major retailers report up to 30% reduction in inventory costs and 25% improvement in \
delivery times since implementing AI solutions. The technology enables real-time \
decision-making, allowing businesses to respond quickly to market changes and supply \
disruptions. However, successful AI implementation requires significant investment in \
data infrastructure and employee training.

As AI technology continues to evolve, experts predict even greater integration in supply \
chain operations, with autonomous systems handling routine decisions and human oversight \
focusing on strategic planning and exception management."""

DICTATION_PHRASE = (
    "Quarterly earnings exceeded expectations due to strong performance in the APAC region."
)

# Submitted in place of a transcript; no speech-to-text is performed.
SPEAKING_PLACEHOLDER = "[30-second recorded response]"


class TaskDefinition(BaseModel):
    """A task as presented to the candidate."""

    model_config = ConfigDict(frozen=True)

    question_type: QuestionType
    title: str
    instruction: str
    content: str = ""

    @property
    def prompt(self) -> str:
        """Instruction plus any reading material, as sent to the grader."""
        if not self.content:
            return self.instruction
        return f"{self.instruction}\n\n{self.content}"


EXAM_TASKS: tuple[TaskDefinition, ...] = (
    TaskDefinition(
        question_type=QuestionType.EMAIL,
        title="Email Response (Writing)",
        instruction=(
            "You are a project manager. Your team has missed an important deadline for a "
            "client, 'Global Innovations Inc.' Write a professional email (150-200 words) to "
            "the client. You need to apologize, briefly explain the reason for the delay (a "
            "technical issue), and provide a new, confident delivery date for this Friday."
        ),
    ),
    TaskDefinition(
        question_type=QuestionType.SUMMARIZE,
        title="Summarize Text (Reading & Writing)",
        instruction="Read the following article and summarize the key points in 3-4 sentences:",
        content=SUMMARY_ARTICLE,
    ),
    TaskDefinition(
        question_type=QuestionType.DICTATION,
        title="Dictation (Listening & Typing)",
        instruction="Click the play button and type exactly what you hear:",
    ),
    TaskDefinition(
        question_type=QuestionType.SPEAKING,
        title="Spoken Response (Speaking)",
        instruction=(
            "You are in a job interview. The interviewer asks: \"Can you tell me about a time "
            "you had to handle a difficult colleague?\" Prepare a brief, 30-second response. "
            "Click 'Record' to begin."
        ),
    ),
)


def get_task(question_type: QuestionType) -> TaskDefinition:
    """Return the catalogue entry for a question type."""
    for task in EXAM_TASKS:
        if task.question_type == question_type:
            return task
    raise KeyError(question_type)
