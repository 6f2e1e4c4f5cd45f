# studysphere/services/pipelines.py
"""
Stage definitions for the three job kinds.

A stage reads what it needs from the job record, calls its collaborators and
persists its own output before returning. Stages never touch ``status``; the
runner owns that.
"""
import json
import logging
from functools import partial
from typing import Callable, Dict, List

from studysphere.errors import GenerationError
from studysphere.models import JobKind
from studysphere.models.results import (
    Mindmap,
    NoteSummary,
    PaperCitation,
    PaperSummary,
    ProblemSolution,
    ResearchQuestion,
)
from studysphere.services.ai_service import DEFAULT_PROBLEM_LABEL, ask_json
from studysphere.services.citations import format_citations, normalize_citation
from studysphere.services.collaborators import Collaborators
from studysphere.services.job_store import JobStore
from studysphere.services.parsing import as_str_list

logger = logging.getLogger(__name__)

# Prompt context limits (characters)
SOLVE_CONTEXT = 8000
SUMMARY_CONTEXT = 10000
QUESTIONS_CONTEXT = 8000


class Stage:
    def __init__(self, name: str, fn: Callable[[JobStore, str], None]):
        self.name = name
        self.fn = fn

    def run(self, store: JobStore, job_id: str) -> None:
        self.fn(store, job_id)

    def __repr__(self):
        return f"<Stage {self.name}>"


class Pipeline:
    def __init__(self, kind: str, stages: List[Stage]):
        self.kind = kind
        self.stages = stages


# ---------------------------
# Shared stages
# ---------------------------

def extract_document(c: Collaborators, store: JobStore, job_id: str) -> None:
    job = store.get(job_id)
    text = c.extractor.extract(job.source_ref)
    store.patch(job_id, extracted_text=text)


# ---------------------------
# Homework
# ---------------------------

SOLVE_PROMPT = """You are a homework tutor. Solve this {problem_type} problem step by step.

PROBLEM: {text}

Return ONLY valid JSON with this exact structure (no markdown, no extra text):
{{
  "step_by_step_solution": [
    {{"step": 1, "description": "First step explanation", "calculation": "Formula or code here"}}
  ],
  "final_answer": "Complete solution or code",
  "explanation": "Overall explanation of the approach"
}}"""


def classify_problem(c: Collaborators, store: JobStore, job_id: str) -> None:
    job = store.get(job_id)
    try:
        label, confidence = c.classifier.classify(job.extracted_text)
    except Exception as e:
        logger.warning(
            "classification failed, using %s: %s", DEFAULT_PROBLEM_LABEL, e,
            extra={"job_id": job_id, "kind": job.kind, "stage": "classify"},
        )
        label, confidence = DEFAULT_PROBLEM_LABEL, 0.0
    store.patch(job_id, label=label, label_confidence=confidence)


def solve_problem(c: Collaborators, store: JobStore, job_id: str) -> None:
    job = store.get(job_id)
    prompt = SOLVE_PROMPT.format(
        problem_type=job.label or DEFAULT_PROBLEM_LABEL,
        text=job.extracted_text[:SOLVE_CONTEXT],
    )
    payload = ask_json(c.llm, prompt, required=["step_by_step_solution", "final_answer", "explanation"])

    steps = payload["step_by_step_solution"]
    if not isinstance(steps, list):
        raise GenerationError("step_by_step_solution is not a list")

    store.add_result(job_id, ProblemSolution(
        step_by_step_solution=steps,
        final_answer=_as_text(payload["final_answer"]),
        explanation=_as_text(payload["explanation"]),
    ))


# ---------------------------
# Notes
# ---------------------------

NOTE_PROMPT = """Analyze the following note and provide:
1. A comprehensive summary
2. Key concepts as an array
3. Mindmap data structure (root, children)

Note Content:
{text}

Respond in JSON format as:
{{
  "summary": "...",
  "key_concepts": ["..."],
  "mindmap_data": {{"root": "...", "children": [...]}}
}}"""


def transcribe_note(c: Collaborators, store: JobStore, job_id: str) -> None:
    job = store.get(job_id)
    text = c.transcriber.transcribe(job.source_ref)
    store.patch(job_id, extracted_text=text)


def summarize_note(c: Collaborators, store: JobStore, job_id: str) -> None:
    job = store.get(job_id)
    payload = ask_json(c.llm, NOTE_PROMPT.format(text=job.extracted_text), required=["summary"])

    mindmap = payload.get("mindmap_data")
    store.add_result(
        job_id,
        NoteSummary(summary=_as_text(payload["summary"]), key_concepts=as_str_list(payload.get("key_concepts"))),
        Mindmap(mindmap_data=mindmap if isinstance(mindmap, dict) else None),
    )


# ---------------------------
# Research papers
# ---------------------------

PAPER_SUMMARY_PROMPT = """Analyze the following research paper and provide:
1. A concise abstract (150-200 words)
2. A list of 5-7 key findings

Research Paper Content:
{text}

Please respond in JSON format:
{{"abstract": "your abstract here", "key_findings": ["finding 1", "finding 2"]}}"""

CITATIONS_PROMPT = """Extract all citations/references from the following research paper.
For each citation, extract: authors (as array), title, year, journal, and DOI if available.

Research Paper Content:
{text}

Please respond in JSON format:
{{"citations": [{{"authors": ["Author 1"], "title": "Paper title", "year": "2023", "journal": "Journal name", "doi": "10.1234/example"}}]}}"""

QUESTIONS_PROMPT = """Based on the following research paper, help formulate:
1. 5-7 potential research questions for further study
2. 3-5 research gaps or unanswered questions

Research Paper Content:
{text}

Please respond in JSON format:
{{"questions": ["question 1"], "research_gaps": ["gap 1"]}}"""

METHODOLOGY_PROMPT = """Based on the following research paper, suggest 3-5 appropriate research methodologies that could be used for further study in this area.

Research Paper Content:
{text}

Please respond in JSON format:
{{"methodologies": ["methodology 1"]}}"""


def summarize_paper(c: Collaborators, store: JobStore, job_id: str) -> None:
    job = store.get(job_id)
    payload = ask_json(
        c.gemini, PAPER_SUMMARY_PROMPT.format(text=job.extracted_text[:SUMMARY_CONTEXT]), required=["abstract"]
    )
    store.add_result(job_id, PaperSummary(
        abstract=_as_text(payload["abstract"]),
        key_findings=as_str_list(payload.get("key_findings")),
    ))


def extract_citations(c: Collaborators, store: JobStore, job_id: str) -> None:
    job = store.get(job_id)
    payload = ask_json(c.gemini, CITATIONS_PROMPT.format(text=job.extracted_text[:SUMMARY_CONTEXT]))

    raw = payload.get("citations", [])
    if not isinstance(raw, list):
        raise GenerationError("citations is not a list")
    citations = [normalize_citation(r) for r in raw if isinstance(r, dict)]

    store.add_result(job_id, PaperCitation(citations=citations, formatted_citations=format_citations(citations)))


def _optional_list(client, prompt: str, key: str, job_id: str) -> list:
    try:
        return as_str_list(ask_json(client, prompt).get(key))
    except Exception as e:
        logger.warning(
            "could not generate %s: %s", key, e,
            extra={"job_id": job_id, "kind": JobKind.RESEARCH, "stage": "questions"},
        )
        return []


def suggest_research_questions(c: Collaborators, store: JobStore, job_id: str) -> None:
    job = store.get(job_id)
    text = job.extracted_text[:QUESTIONS_CONTEXT]

    try:
        payload = ask_json(c.llm, QUESTIONS_PROMPT.format(text=text))
        questions = as_str_list(payload.get("questions"))
        gaps = as_str_list(payload.get("research_gaps"))
    except Exception as e:
        logger.warning(
            "could not generate research questions: %s", e,
            extra={"job_id": job_id, "kind": job.kind, "stage": "questions"},
        )
        questions, gaps = [], []

    methodologies = _optional_list(c.llm, METHODOLOGY_PROMPT.format(text=text), "methodologies", job_id)

    store.add_result(job_id, ResearchQuestion(
        questions=questions,
        research_gaps=gaps,
        methodology_suggestions=methodologies,
    ))


def _as_text(value) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def build_pipelines(c: Collaborators) -> Dict[str, Pipeline]:
    return {
        JobKind.HOMEWORK: Pipeline(JobKind.HOMEWORK, [
            Stage("extract", partial(extract_document, c)),
            Stage("classify", partial(classify_problem, c)),
            Stage("solve", partial(solve_problem, c)),
        ]),
        JobKind.NOTE: Pipeline(JobKind.NOTE, [
            Stage("transcribe", partial(transcribe_note, c)),
            Stage("summarize", partial(summarize_note, c)),
        ]),
        JobKind.RESEARCH: Pipeline(JobKind.RESEARCH, [
            Stage("extract", partial(extract_document, c)),
            Stage("summarize", partial(summarize_paper, c)),
            Stage("citations", partial(extract_citations, c)),
            Stage("questions", partial(suggest_research_questions, c)),
        ]),
    }
