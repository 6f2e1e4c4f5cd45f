# studysphere/models/__init__.py
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()

def init_app(app):
    app.config.setdefault("SQLALCHEMY_TRACK_MODIFICATIONS", False)
    db.init_app(app)
    migrate.init_app(app, db)

# Imported for table registration
from .job import Job, JobKind, JobStatus  # noqa
from .results import (  # noqa
    ProblemSolution,
    NoteSummary,
    Mindmap,
    PaperSummary,
    PaperCitation,
    ResearchQuestion,
)
from .quiz import Quiz, QuizQuestion, QuizAttempt  # noqa

__all__ = [
    "db", "migrate",
    "Job", "JobKind", "JobStatus",
    "ProblemSolution", "NoteSummary", "Mindmap",
    "PaperSummary", "PaperCitation", "ResearchQuestion",
    "Quiz", "QuizQuestion", "QuizAttempt",
]
