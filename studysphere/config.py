# studysphere/config.py
import os
import tempfile


def _as_bool(v) -> bool:
    return str(v).lower() in ("1", "true", "yes", "on")


class BaseConfig:
    # --- Celery ---
    CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "redis://redis:6379/0")
    CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", "redis://redis:6379/0")
    CELERY_WORKER_CONCURRENCY = int(os.environ.get("CELERY_WORKER_CONCURRENCY", "4"))
    CELERY_TASK_ALWAYS_EAGER = _as_bool(os.environ.get("CELERY_TASK_ALWAYS_EAGER", "false"))
    CELERY_CHECK_BROKER = _as_bool(os.environ.get("CELERY_CHECK_BROKER", "false"))

    # --- DB ---
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", "postgresql+psycopg2://studysphere:studysphere@db:5432/studysphere"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False

    # --- Auth ---
    JWT_SECRET = os.environ.get("JWT_SECRET", "dev_jwt_secret_change_me")
    JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")

    # --- Uploads ---
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", os.path.abspath("uploads"))
    MAX_CONTENT_LENGTH = int(os.environ.get("MAX_CONTENT_LENGTH", str(50 * 1024 * 1024)))

    # --- Collaborators ---
    COLLABORATOR_TIMEOUT = float(os.environ.get("COLLABORATOR_TIMEOUT", "60"))

    HUGGINGFACE_API_KEY = os.environ.get("HUGGINGFACE_API_KEY", "")
    HF_CHAT_URL = os.environ.get("HF_CHAT_URL", "https://router.huggingface.co/v1/chat/completions")
    HF_CHAT_MODEL = os.environ.get("HF_CHAT_MODEL", "Qwen/Qwen3-Coder-480B-A35B-Instruct")
    HF_CLASSIFIER_URL = os.environ.get(
        "HF_CLASSIFIER_URL",
        "https://router.huggingface.co/hf-inference/models/facebook/bart-large-mnli",
    )

    GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY", "")
    GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
    GEMINI_BASE_URL = os.environ.get(
        "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
    )

    OCR_URL = os.environ.get("OCR_URL", "https://jaided.ai/api/ocr")
    OCR_USERNAME = os.environ.get("OCR_USERNAME", "")
    OCR_API_KEY = os.environ.get("OCR_API_KEY", "")

    ASSEMBLY_API_KEY = os.environ.get("ASSEMBLY_API_KEY", "")
    ASSEMBLY_BASE_URL = os.environ.get("ASSEMBLY_BASE_URL", "https://api.assemblyai.com/v2")

    SEMANTIC_SCHOLAR_URL = os.environ.get(
        "SEMANTIC_SCHOLAR_URL", "https://api.semanticscholar.org/graph/v1/paper/search"
    )
    SEMANTIC_SCHOLAR_API_KEY = os.environ.get("SEMANTIC_SCHOLAR_API_KEY")
    RELATED_SEARCH_TIMEOUT = float(os.environ.get("RELATED_SEARCH_TIMEOUT", "10"))
    RELATED_SEARCH_MAX_ATTEMPTS = 3


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    ENV = "development"


class ProductionConfig(BaseConfig):
    DEBUG = False
    ENV = "production"


class TestingConfig(BaseConfig):
    TESTING = True
    DEBUG = False
    ENV = "testing"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    CELERY_BROKER_URL = "memory://"
    CELERY_RESULT_BACKEND = "cache+memory://"
    CELERY_TASK_ALWAYS_EAGER = True
    JWT_SECRET = "test-secret"
    UPLOAD_FOLDER = os.path.join(tempfile.gettempdir(), "studysphere-test-uploads")
