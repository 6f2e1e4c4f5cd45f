# studysphere/models/quiz.py
import uuid
from datetime import datetime

from studysphere.models import db
from studysphere.models.types import JSONBCompat


def _new_id() -> str:
    return str(uuid.uuid4())


class Quiz(db.Model):
    __tablename__ = "quizzes"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    owner_id = db.Column(db.String(64), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    subject = db.Column(db.String(255), nullable=True)
    difficulty = db.Column(db.String(20), nullable=False, default="medium")
    source_ref = db.Column(db.String(1024), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    questions = db.relationship(
        "QuizQuestion",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="QuizQuestion.position",
    )
    attempts = db.relationship("QuizAttempt", back_populates="quiz", cascade="all, delete-orphan")


class QuizQuestion(db.Model):
    __tablename__ = "quiz_questions"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    quiz_id = db.Column(db.String(36), db.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    question_text = db.Column(db.Text, nullable=False)
    options = db.Column(JSONBCompat(), nullable=False, default=list)
    correct_answer = db.Column(db.Text, nullable=False)

    quiz = db.relationship("Quiz", back_populates="questions")


class QuizAttempt(db.Model):
    __tablename__ = "quiz_attempts"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    quiz_id = db.Column(db.String(36), db.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_id = db.Column(db.String(64), nullable=False, index=True)
    answers = db.Column(JSONBCompat(), nullable=False, default=dict)  # {question_id: answer}
    correct = db.Column(db.Integer, nullable=False, default=0)
    total = db.Column(db.Integer, nullable=False, default=0)
    score = db.Column(db.Float, nullable=False, default=0.0)  # percentage
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    quiz = db.relationship("Quiz", back_populates="attempts")
