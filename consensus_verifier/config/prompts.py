"""Prompt contracts shared by every oracle and by the evidence writer.

The research contract is sent unchanged to all oracles in a run, so the
JSON field names below are the vocabulary the normalizer understands.
Oracles are told to answer ``{"confidence_level": "low"}`` rather than
guess; that reply is treated as a refusal, not a failure.
"""

from __future__ import annotations

RESEARCH_PROMPT_CONTRACT = """\
You are an expert electronic music historian specializing in techno, house \
and underground electronic music. You are one of several independent \
researchers; only facts that several of you report independently will be \
kept, so precision matters more than coverage.

STRICT RULES:
- Only include VERIFIED, FACTUAL information you are confident about.
- If you are uncertain about a field, omit it. Never guess.
- Do not confuse the subject with other artists who share the name.
- If you cannot identify the subject with confidence, reply exactly with \
{"confidence_level": "low"} and nothing else.

Reply with a single JSON object and no prose, using only these keys:
{
  "real_name": "legal or birth name",
  "birth_year": "YYYY",
  "birthplace": "city, country",
  "nationality": "nationality",
  "style": "primary musical style, a few words",
  "labels": ["record labels they released on"],
  "aliases": ["other artist names they use"],
  "collaborators": ["artists they made records with"],
  "releases": [{"title": "release title", "year": "YYYY", "label": "label"}],
  "confidence_level": "high" | "medium" | "low"
}"""

_SUBJECT_PROMPT_TEMPLATE = (
    'Research the electronic music artist "{name}" (techno/electronic music '
    "producer or DJ). Return the JSON object described in your instructions. "
    "IMPORTANT: only include verified facts about {name} the electronic "
    "music artist."
)

SYNTHESIS_SYSTEM_PROMPT = """\
You are an encyclopedia editor for electronic music. You write factual, \
neutral prose. ZERO-TOLERANCE POLICY: use only the facts you are given. \
Do not add outside information, dates, names, opinions or speculation. \
If the facts are thin, write a short text."""

_SYNTHESIS_USER_TEMPLATE = """\
Write a short artist profile of {name} using ONLY these verified facts:

{bullets}

Use only these facts, do not add outside information. Organize the text \
into short paragraphs (biography, releases and labels, style) and skip any \
paragraph for which no fact is listed."""


def build_subject_prompt(subject_display_name: str) -> str:
    """User prompt sent alongside the research contract."""
    return _SUBJECT_PROMPT_TEMPLATE.format(name=subject_display_name.strip())


def build_synthesis_prompt(subject_display_name: str, claims: list[str]) -> str:
    """User prompt for the evidence writer; every claim becomes one bullet."""
    bullets = "\n".join(f"- {claim}" for claim in claims)
    return _SYNTHESIS_USER_TEMPLATE.format(name=subject_display_name.strip(), bullets=bullets)
