# studysphere/services/collaborators.py
"""
The external services a job pipeline talks to, built once per app from
config and handed to the runner instead of living in module globals.
"""
from dataclasses import dataclass

import requests
from flask import current_app

from studysphere.services.ai_service import GeminiClient, HuggingFaceChat, ZeroShotClassifier
from studysphere.services.extraction import JaidedOCRClient, TextExtractor
from studysphere.services.scholar_client import SemanticScholarClient
from studysphere.services.transcription import AssemblyAIClient

EXTENSION_KEY = "studysphere"


@dataclass
class Collaborators:
    extractor: TextExtractor
    classifier: ZeroShotClassifier
    llm: HuggingFaceChat
    gemini: GeminiClient
    transcriber: AssemblyAIClient
    scholar: SemanticScholarClient


def build_collaborators(config) -> Collaborators:
    session = requests.Session()
    timeout = config["COLLABORATOR_TIMEOUT"]

    return Collaborators(
        extractor=TextExtractor(
            ocr=JaidedOCRClient(
                config["OCR_URL"], config["OCR_USERNAME"], config["OCR_API_KEY"],
                session=session, timeout=timeout,
            )
        ),
        classifier=ZeroShotClassifier(
            config["HUGGINGFACE_API_KEY"], config["HF_CLASSIFIER_URL"], session=session, timeout=timeout
        ),
        llm=HuggingFaceChat(
            config["HUGGINGFACE_API_KEY"], config["HF_CHAT_URL"], config["HF_CHAT_MODEL"],
            session=session, timeout=timeout,
        ),
        gemini=GeminiClient(
            config["GEMINI_API_KEY"], config["GEMINI_MODEL"], config["GEMINI_BASE_URL"],
            session=session, timeout=timeout,
        ),
        transcriber=AssemblyAIClient(
            config["ASSEMBLY_API_KEY"], config["ASSEMBLY_BASE_URL"], session=session, timeout=timeout
        ),
        scholar=SemanticScholarClient(
            config["SEMANTIC_SCHOLAR_URL"],
            api_key=config.get("SEMANTIC_SCHOLAR_API_KEY"),
            timeout=config["RELATED_SEARCH_TIMEOUT"],
            max_attempts=config["RELATED_SEARCH_MAX_ATTEMPTS"],
        ),
    )


def init_app(app) -> None:
    app.extensions.setdefault(EXTENSION_KEY, {})
    app.extensions[EXTENSION_KEY]["collaborators"] = build_collaborators(app.config)


def get_collaborators() -> Collaborators:
    return current_app.extensions[EXTENSION_KEY]["collaborators"]
