# studysphere/services/quiz_service.py
"""
Quiz generation and attempts.

Unlike homework, notes and papers, a quiz is produced inside the request:
there is no job record, and a collaborator failure is the HTTP error.
"""
import logging
from typing import List, Tuple

from studysphere.errors import BadRequest, GenerationError, NotFound
from studysphere.models import Quiz, QuizAttempt, QuizQuestion, db
from studysphere.services.ai_service import ask_json
from studysphere.services.collaborators import Collaborators
from studysphere.services.storage import remove_file

logger = logging.getLogger(__name__)

DIFFICULTIES = ("easy", "medium", "hard")
MIN_QUESTIONS, MAX_QUESTIONS = 1, 50
OPTIONS_PER_QUESTION = 4
QUIZ_CONTEXT = 15000

QUIZ_PROMPT = """Generate a quiz from the following course document.

Requirements:
- Number of Questions: {num_questions}
- Difficulty Level: {difficulty}

You must return ONLY a valid JSON object with the following exact structure (no markdown, no code blocks, no additional text):

{{
  "quiz_title": "A descriptive title for the quiz based on the document content",
  "subject": "The main subject/topic covered in the document",
  "questions": [
    {{
      "question_text": "The question text",
      "options": ["option A", "option B", "option C", "option D"],
      "correct_answer": "The exact text of the correct option from the options array"
    }}
  ]
}}

Rules:
1. Each question must have exactly 4 options
2. The correct_answer must be the EXACT TEXT of one of the options
3. Base all questions strictly on the document content

Document:
{text}"""


def parse_generation_params(num_questions, difficulty) -> Tuple[int, str]:
    try:
        n = int(num_questions)
    except (TypeError, ValueError):
        raise BadRequest("num_questions must be an integer")
    if not MIN_QUESTIONS <= n <= MAX_QUESTIONS:
        raise BadRequest(f"num_questions must be between {MIN_QUESTIONS} and {MAX_QUESTIONS}")

    d = (difficulty or "").strip().lower()
    if d not in DIFFICULTIES:
        raise BadRequest(f"difficulty must be one of: {', '.join(DIFFICULTIES)}")
    return n, d


def validate_quiz_payload(payload: dict) -> List[dict]:
    questions = payload.get("questions")
    if not isinstance(questions, list) or not questions:
        raise GenerationError("No questions generated")

    out = []
    for i, q in enumerate(questions, start=1):
        if not isinstance(q, dict):
            raise GenerationError(f"Question {i} is not an object")
        text, options, answer = q.get("question_text"), q.get("options"), q.get("correct_answer")
        if not text or not isinstance(options, list) or not answer:
            raise GenerationError(f"Question {i} is missing required fields")
        if len(options) != OPTIONS_PER_QUESTION:
            raise GenerationError(f"Question {i} must have exactly {OPTIONS_PER_QUESTION} options")
        if answer not in options:
            raise GenerationError(f"Question {i} correct_answer must match one of the options")
        out.append({"question_text": str(text), "options": [str(o) for o in options], "correct_answer": str(answer)})
    return out


class QuizService:
    def __init__(self, collaborators: Collaborators, session=None):
        self.c = collaborators
        self.session = session or db.session

    def generate(self, owner_id: str, path: str, num_questions: int, difficulty: str) -> Quiz:
        try:
            text = self.c.extractor.extract(path)
            payload = ask_json(
                self.c.gemini,
                QUIZ_PROMPT.format(num_questions=num_questions, difficulty=difficulty, text=text[:QUIZ_CONTEXT]),
                required=["quiz_title", "subject"],
            )
            questions = validate_quiz_payload(payload)
        except Exception:
            remove_file(path)
            raise

        quiz = Quiz(
            owner_id=str(owner_id),
            title=str(payload["quiz_title"]),
            subject=str(payload["subject"]),
            difficulty=difficulty,
            source_ref=path,
        )
        quiz.questions = [QuizQuestion(position=i, **q) for i, q in enumerate(questions)]
        self.session.add(quiz)
        self.session.commit()
        logger.info("quiz generated: %s (%d questions)", quiz.id, len(questions))
        return quiz

    def list_for(self, owner_id: str) -> List[Quiz]:
        return (
            self.session.query(Quiz)
            .filter(Quiz.owner_id == str(owner_id))
            .order_by(Quiz.created_at.desc())
            .all()
        )

    def get(self, quiz_id: str, owner_id: str) -> Quiz:
        quiz = self.session.get(Quiz, quiz_id)
        # another user's quiz is reported as missing
        if quiz is None or quiz.owner_id != str(owner_id):
            raise NotFound("Quiz not found")
        return quiz

    def delete(self, quiz_id: str, owner_id: str) -> None:
        quiz = self.get(quiz_id, owner_id)
        source_ref = quiz.source_ref
        self.session.delete(quiz)
        self.session.commit()
        remove_file(source_ref)

    def submit_attempt(self, quiz_id: str, owner_id: str, answers) -> QuizAttempt:
        if not isinstance(answers, dict):
            raise BadRequest("answers must be an object of {question_id: answer}")
        quiz = self.get(quiz_id, owner_id)
        if not quiz.questions:
            raise BadRequest("Quiz has no questions")

        correct = sum(1 for q in quiz.questions if answers.get(q.id) == q.correct_answer)
        total = len(quiz.questions)
        attempt = QuizAttempt(
            quiz_id=quiz.id,
            owner_id=str(owner_id),
            answers={str(k): v for k, v in answers.items()},
            correct=correct,
            total=total,
            score=correct / total * 100,
        )
        self.session.add(attempt)
        self.session.commit()
        return attempt

    def attempts_for(self, quiz_id: str, owner_id: str) -> List[QuizAttempt]:
        self.get(quiz_id, owner_id)
        return (
            self.session.query(QuizAttempt)
            .filter(QuizAttempt.quiz_id == quiz_id, QuizAttempt.owner_id == str(owner_id))
            .order_by(QuizAttempt.created_at.desc())
            .all()
        )

    def get_attempt(self, attempt_id: str, owner_id: str) -> QuizAttempt:
        attempt = self.session.get(QuizAttempt, attempt_id)
        if attempt is None or attempt.owner_id != str(owner_id):
            raise NotFound("Attempt not found")
        return attempt
