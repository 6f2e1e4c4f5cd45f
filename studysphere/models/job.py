# studysphere/models/job.py
import uuid
from datetime import datetime

from studysphere.models import db


class JobStatus:
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    ALL = (PENDING, PROCESSING, COMPLETED, FAILED)
    TERMINAL = frozenset({COMPLETED, FAILED})

    # pending < processing < {completed, failed}
    _RANK = {PENDING: 0, PROCESSING: 1, COMPLETED: 2, FAILED: 2}

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return status in cls.TERMINAL

    @classmethod
    def can_transition(cls, old: str, new: str) -> bool:
        if old not in cls._RANK or new not in cls._RANK:
            return False
        if cls.is_terminal(old):
            return False
        return cls._RANK[new] > cls._RANK[old]


class JobKind:
    HOMEWORK = "homework"
    NOTE = "note"
    RESEARCH = "research"

    ALL = (HOMEWORK, NOTE, RESEARCH)


def _new_id() -> str:
    return str(uuid.uuid4())


class Job(db.Model):
    __tablename__ = "jobs"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    kind = db.Column(db.String(20), nullable=False, index=True)
    owner_id = db.Column(db.String(64), nullable=False, index=True)

    source_ref = db.Column(db.String(1024), nullable=False)
    original_filename = db.Column(db.String(255), nullable=True)
    title = db.Column(db.String(255), nullable=True)

    status = db.Column(db.String(20), nullable=False, default=JobStatus.PENDING, index=True)
    extracted_text = db.Column(db.Text, nullable=True)
    label = db.Column(db.String(32), nullable=True)
    label_confidence = db.Column(db.Float, nullable=True)
    error_detail = db.Column(db.String(1000), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Child result rows, written once by the runner
    solution = db.relationship(
        "ProblemSolution", uselist=False, back_populates="job", cascade="all, delete-orphan"
    )
    note_summary = db.relationship(
        "NoteSummary", uselist=False, back_populates="job", cascade="all, delete-orphan"
    )
    mindmap = db.relationship(
        "Mindmap", uselist=False, back_populates="job", cascade="all, delete-orphan"
    )
    paper_summary = db.relationship(
        "PaperSummary", uselist=False, back_populates="job", cascade="all, delete-orphan"
    )
    paper_citation = db.relationship(
        "PaperCitation", uselist=False, back_populates="job", cascade="all, delete-orphan"
    )
    research_question = db.relationship(
        "ResearchQuestion", uselist=False, back_populates="job", cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.Index("ix_jobs_owner_kind_created", "owner_id", "kind", "created_at"),
    )

    @property
    def is_terminal(self) -> bool:
        return JobStatus.is_terminal(self.status)

    def __repr__(self):
        return f"<Job {self.kind}:{self.id} {self.status}>"
