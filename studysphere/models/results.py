# studysphere/models/results.py
"""Per-stage outputs of a job. Created once when the stage succeeds, never updated."""
import uuid
from datetime import datetime

from studysphere.models import db
from studysphere.models.types import JSONBCompat


def _new_id() -> str:
    return str(uuid.uuid4())


class _ResultMixin:
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)


def _job_fk():
    return db.Column(
        db.String(36),
        db.ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )


class ProblemSolution(_ResultMixin, db.Model):
    __tablename__ = "problem_solutions"

    job_id = _job_fk()
    step_by_step_solution = db.Column(JSONBCompat(), nullable=False, default=list)  # [{step, description, calculation}]
    final_answer = db.Column(db.Text, nullable=False)
    explanation = db.Column(db.Text, nullable=False)

    job = db.relationship("Job", back_populates="solution")


class NoteSummary(_ResultMixin, db.Model):
    __tablename__ = "note_summaries"

    job_id = _job_fk()
    summary = db.Column(db.Text, nullable=False)
    key_concepts = db.Column(JSONBCompat(), nullable=False, default=list)

    job = db.relationship("Job", back_populates="note_summary")


class Mindmap(_ResultMixin, db.Model):
    __tablename__ = "mindmaps"

    job_id = _job_fk()
    mindmap_data = db.Column(JSONBCompat(), nullable=True)  # {root, children: [...]}

    job = db.relationship("Job", back_populates="mindmap")


class PaperSummary(_ResultMixin, db.Model):
    __tablename__ = "paper_summaries"

    job_id = _job_fk()
    abstract = db.Column(db.Text, nullable=False)
    key_findings = db.Column(JSONBCompat(), nullable=False, default=list)

    job = db.relationship("Job", back_populates="paper_summary")


class PaperCitation(_ResultMixin, db.Model):
    __tablename__ = "paper_citations"

    job_id = _job_fk()
    citations = db.Column(JSONBCompat(), nullable=False, default=list)
    formatted_citations = db.Column(JSONBCompat(), nullable=False, default=dict)  # {apa, mla, chicago, ieee}

    job = db.relationship("Job", back_populates="paper_citation")


class ResearchQuestion(_ResultMixin, db.Model):
    __tablename__ = "research_questions"

    job_id = _job_fk()
    questions = db.Column(JSONBCompat(), nullable=False, default=list)
    research_gaps = db.Column(JSONBCompat(), nullable=False, default=list)
    methodology_suggestions = db.Column(JSONBCompat(), nullable=False, default=list)

    job = db.relationship("Job", back_populates="research_question")
