# studysphere/services/citations.py
from typing import Dict, List

STYLES = ("apa", "mla", "chicago", "ieee")


def normalize_citation(raw: dict) -> dict:
    authors = raw.get("authors") or []
    if isinstance(authors, str):
        authors = [a.strip() for a in authors.split(",") if a.strip()]
    return {
        "authors": [str(a) for a in authors],
        "title": str(raw.get("title") or "").strip(),
        "year": str(raw["year"]) if raw.get("year") else None,
        "journal": raw.get("journal") or None,
        "doi": raw.get("doi") or None,
    }


def format_citation(c: dict, style: str) -> str:
    authors = ", ".join(c.get("authors") or [])
    year = c.get("year") or "n.d."
    title = c.get("title") or ""
    journal = c.get("journal") or ""
    doi = c.get("doi")

    if style == "apa":
        out = f"{authors} ({year}). {title}. {journal}. {f'https://doi.org/{doi}' if doi else ''}"
    elif style == "mla":
        out = f'{authors}. "{title}." {journal}, {year}. {f"DOI: {doi}" if doi else ""}'
    elif style == "chicago":
        out = f'{authors}. "{title}." {journal} ({year}). {f"https://doi.org/{doi}" if doi else ""}'
    elif style == "ieee":
        out = f'{authors}, "{title}," {journal}, {year}. {f"DOI: {doi}" if doi else ""}'
    else:
        out = f"{authors} ({year}). {title}. {journal}"
    return out.strip()


def format_citations(citations: List[dict]) -> Dict[str, List[str]]:
    return {style: [format_citation(c, style) for c in citations] for style in STYLES}
