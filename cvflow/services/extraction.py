"""Structured extraction of the recruitment form embedded in a candidate CV.

Two isolation steps keep the model honest. First the region holding the
form is cut out of the document so unrelated CV text never reaches the
model. Then the prompt confines the proficiency grid to per-row reading
with a one-mark rule, so the model cannot extrapolate across rows of a
table it only sees as flattened text.
"""
import json
import logging
import re
from typing import Any, Dict

from ..errors import FormNotFound, SchemaError
from .pdf_text import PAGE_BREAK, pdf_to_text
from .schema import FIELD_LABELS, LANGUAGE_LABEL, LANGUAGE_LABELS, LEVELS, normalize_fields

logger = logging.getLogger(__name__)

FORM_MARKER = "QUESTIONNAIRE DE RECRUTEMENT"
FORM_WINDOW_CHARS = 6000
FORM_PAGE_INDEX = 2  # the form is usually the third page

_FENCE = re.compile(r"```(?:json)?")


def isolate_form(document_text: str, marker: str = FORM_MARKER,
                 window: int = FORM_WINDOW_CHARS) -> str:
    pages = document_text.split(PAGE_BREAK)
    if len(pages) > FORM_PAGE_INDEX and marker in pages[FORM_PAGE_INDEX]:
        return pages[FORM_PAGE_INDEX]

    idx = document_text.find(marker)
    if idx == -1:
        raise FormNotFound(
            "Recruitment form not found. The PDF must contain the questionnaire.",
            marker=marker,
        )
    return document_text[idx:idx + window]


def _schema_block() -> str:
    lines = ["{"]
    for label in FIELD_LABELS.values():
        lines.append(f'  "{label}": "string",')
    lines.append(f'  "{LANGUAGE_LABEL}": {{')
    subs = list(LANGUAGE_LABELS.values())
    for i, label in enumerate(subs):
        lines.append(f'    "{label}": "string"' + ("," if i < len(subs) - 1 else ""))
    lines.append("  }")
    lines.append("}")
    return "\n".join(lines)


def build_prompt(form_text: str) -> str:
    row_labels = list(LANGUAGE_LABELS.values())
    prompt_lines = [
        "You are a STRICT data extraction engine.",
        "",
        "ABSOLUTE RULES:",
        "- Extract ONLY information explicitly written in the form.",
        "- DO NOT infer, guess, normalize, or harmonize values.",
        "- DO NOT make values consistent across fields.",
        '- If a field is empty, unclear, or ambiguous, return "-".',
        "- Output VALID JSON ONLY.",
        "- NO explanations. NO comments. NO extra text.",
        "",
        "JSON FORMAT (must match EXACTLY):",
        _schema_block(),
        "",
        "CRITICAL EXTRACTION METHOD (MANDATORY):",
        f'For "{LANGUAGE_LABEL}", extraction MUST be done in ISOLATION.',
        "",
        "STEP 1 - ROW ISOLATION (NO EXCEPTIONS):",
    ]
    prompt_lines += [f'- Isolate text belonging ONLY to "{r}".' for r in row_labels]
    prompt_lines += [
        "- Text from one row MUST NOT influence another row.",
        "- Do NOT reuse or copy values across rows.",
        "",
        "STEP 2 - PER-ROW ANALYSIS:",
        "Each isolated row MUST be analyzed independently.",
        "",
        "VALID PROFICIENCY LEVELS (EXACT WORDS ONLY):",
    ]
    prompt_lines += [f'- "{level}"' for level in LEVELS]
    prompt_lines += [
        "",
        "VALID MARKERS:",
        '- "X"',
        '- "oui"',
        "",
        "DECISION RULES (APPLY PER ROW):",
        '- Detect proficiency levels ONLY if explicitly marked with "X" or "oui".',
        "- If EXACTLY ONE level is marked -> output that level.",
        '- If ZERO levels are marked -> output "-".',
        '- If MORE THAN ONE level is marked -> output "-" (DO NOT choose).',
        "- NEVER select a level by frequency, similarity, or consistency.",
        "",
        "STRICT PROHIBITIONS:",
        "- DO NOT translate (e.g. Low, Medium, Good).",
        "- DO NOT assume table alignment.",
        "- DO NOT infer missing marks.",
        "- DO NOT normalize results across rows.",
        "- DO NOT guess even if one value appears dominant.",
        "",
        "FAILURE SAFETY RULE:",
        "- If table structure is unclear or text is ambiguous, return \"-\" for "
        + ", ".join(row_labels[:-1]) + f", and {row_labels[-1]}.",
        "",
        "FORM TEXT:",
        form_text,
        "",
        "JSON:",
    ]
    return "\n".join(prompt_lines)


def parse_response(raw: str) -> Dict[str, Any]:
    """Pull the JSON object out of a completion that may carry fences or chatter."""
    cleaned = _FENCE.sub("", raw or "").strip()
    first = cleaned.find("{")
    last = cleaned.rfind("}")
    if first == -1 or last == -1 or last < first:
        raise SchemaError("No JSON object returned by model", response=cleaned[:500])
    try:
        data = json.loads(cleaned[first:last + 1])
    except json.JSONDecodeError as e:
        raise SchemaError(f"Invalid JSON structure from model: {e.msg}", response=cleaned[:500]) from e
    if not isinstance(data, dict):
        raise SchemaError("Model JSON is not an object", response=cleaned[:500])
    return data


def extract(document_text: str, llm, marker: str = FORM_MARKER,
            window: int = FORM_WINDOW_CHARS) -> Dict[str, Any]:
    """Return normalised candidate fields for ``document_text``.

    Raises FormNotFound before the model is ever called when the marker is
    missing; ModelError and SchemaError come from the call and the parse.
    """
    form_text = isolate_form(document_text, marker=marker, window=window)
    logger.info("form region isolated chars=%d", len(form_text))
    raw = llm.generate(build_prompt(form_text))
    logger.debug("model raw response: %s", raw[:2000])
    fields = normalize_fields(parse_response(raw))
    logger.info("extraction complete unset_fields=%d",
                sum(1 for k in FIELD_LABELS if fields[k] == "-"))
    return fields


def extract_pdf(pdf_bytes: bytes, llm, marker: str = FORM_MARKER,
                window: int = FORM_WINDOW_CHARS):
    """Parse ``pdf_bytes`` and extract; returns ``(fields, document_text)``."""
    text = pdf_to_text(pdf_bytes)
    return extract(text, llm, marker=marker, window=window), text
