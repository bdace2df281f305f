"""Candidate lifecycle: status axes, gate tokens and form submissions.

A candidate carries five independent status axes. Two of them are gates
(``form_status`` and ``eval_status``) that only move forward and guard the
self-service forms: activating a gate mints its token once, submitting
requires the gate to be ``active``, and correcting an evaluation requires it
to be ``submitted``. Every other axis and free-form field is a plain
overwrite.

Gate writes are guarded updates keyed by id and by the gate value that was
read, so a request that lost a race fails instead of overwriting. Artifacts
are rendered and uploaded before that update, and the status is written
together with the artifact URL, so a failed upload never leaves a gate
advanced without its document.
"""
import logging
import os
import secrets
from datetime import datetime, timezone

from werkzeug.utils import secure_filename

from ..errors import InvalidPayload, InvalidTransition, NotFound
from ..models.candidate import (
    EXTRACTED_FIELDS,
    FREEFORM_FIELDS,
    GATE_TOKENS,
    LANGUAGE_FIELD,
    LANGUAGE_KEYS,
    STATUS_AXES,
)
from .artifacts import EVALUATION_CORRECTION, RECRUITMENT_FORM, generate_artifact
from .questions import EVALUATION_QUESTION_IDS
from .schema import clean_value, normalize_candidate_fields, resolve_level
from .tokens import issue_token

logger = logging.getLogger(__name__)

INACTIVE, ACTIVE, SUBMITTED, CORRECTED = "inactive", "active", "submitted", "corrected"

EDITABLE_FIELDS = frozenset(EXTRACTED_FIELDS) | {LANGUAGE_FIELD} | frozenset(FREEFORM_FIELDS) | frozenset(STATUS_AXES)
SYSTEM_FIELDS = frozenset((
    "id", "form_token", "eval_token",
    "form_answers", "form_submitted_at", "qualified_form_path",
    "eval_answers", "eval_submitted_at", "eval_correction", "eval_score",
    "eval_corrected_at", "eval_pdf_path",
    "rapport_stage_path", "created_at", "updated_at",
))

TOKEN_KINDS = {"form": "form_token", "eval": "eval_token"}

REPORT_CONTENT_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


def _utcnow():
    return datetime.now(timezone.utc)


def _naive(dt):
    # DateTime columns hold naive UTC
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def _require(candidate, candidate_id):
    if candidate is None:
        raise NotFound("Candidate not found", candidate_id=str(candidate_id))
    return candidate


def _freeform(field, value):
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise InvalidPayload(f"{field} must be text", field=field)
    return str(value).strip()


def _clean_field(field, value):
    if field in STATUS_AXES:
        if value not in STATUS_AXES[field]:
            raise InvalidPayload(f"{value!r} is not a valid {field}", field=field,
                                 allowed=list(STATUS_AXES[field]))
        return value
    if field in EXTRACTED_FIELDS:
        return clean_value(value)
    if field == LANGUAGE_FIELD:
        if not isinstance(value, dict):
            raise InvalidPayload(f"{field} must be an object", field=field)
        return {key: resolve_level(value.get(key)) for key in LANGUAGE_KEYS}
    return _freeform(field, value)


def _clean_updates(updates):
    if not isinstance(updates, dict):
        raise InvalidPayload("Update body must be an object")
    fields = {}
    for field, value in updates.items():
        if field in SYSTEM_FIELDS:
            raise InvalidPayload(f"{field} is managed by the system", field=field)
        if field not in EDITABLE_FIELDS:
            raise InvalidPayload(f"Unknown field {field}", field=field)
        fields[field] = _clean_field(field, value)
    return fields


def _activation(candidate, axis, requested):
    """Extra fields to write when ``axis`` is requested ``active``."""
    current = getattr(candidate, axis)
    if requested != ACTIVE:
        raise InvalidTransition(f"{axis} cannot be set to {requested} directly",
                                axis=axis, current=current, requested=requested)
    if current not in (INACTIVE, ACTIVE):
        raise InvalidTransition(f"{axis} is already {current}",
                                axis=axis, current=current, requested=requested)
    token_field = GATE_TOKENS[axis]
    if getattr(candidate, token_field):
        logger.info("%s reused candidate=%s", token_field, candidate.id)
        return {}
    logger.info("%s minted candidate=%s", token_field, candidate.id)
    return {token_field: issue_token()}


def _guarded_update(store, candidate, fields, expect):
    if not store.update_fields(candidate.id, fields, expect=expect):
        if store.get(candidate.id) is None:
            raise NotFound("Candidate not found", candidate_id=candidate.id)
        raise InvalidTransition("Candidate changed concurrently", candidate_id=candidate.id,
                                expected=expect)
    return store.get(candidate.id)


def _check_gate(candidate, axis, expected, token=None):
    if token is not None:
        stored = getattr(candidate, GATE_TOKENS[axis]) or ""
        if not secrets.compare_digest(str(token).encode("utf-8"), stored.encode("utf-8")):
            raise NotFound("Invalid or expired link")
    current = getattr(candidate, axis)
    if current != expected:
        raise InvalidTransition(f"{axis} is {current}, expected {expected}",
                                axis=axis, current=current, expected=expected)


def _answers(answers):
    if not isinstance(answers, dict):
        raise InvalidPayload("Answers must be an object keyed by question id")
    return answers


# --- records -----------------------------------------------------------------

def create_candidate(store, data):
    """Insert a candidate from reviewed extraction data with status defaults."""
    if not isinstance(data, dict):
        raise InvalidPayload("Candidate data must be an object")
    unknown = set(data) - set(EXTRACTED_FIELDS) - {LANGUAGE_FIELD} - set(FREEFORM_FIELDS)
    if unknown:
        raise InvalidPayload("Unknown or read-only fields", fields=sorted(unknown))
    fields = normalize_candidate_fields(data)
    for field in FREEFORM_FIELDS:
        if field in data:
            fields[field] = _freeform(field, data[field])
    for axis, values in STATUS_AXES.items():
        fields[axis] = values[0]
    return store.insert(fields)


def get_candidate(store, candidate_id):
    return _require(store.get(candidate_id), candidate_id)


def list_candidates(store, **filters):
    for axis, value in filters.items():
        if axis not in STATUS_AXES:
            raise InvalidPayload(f"Cannot filter on {axis}", field=axis)
        if value not in STATUS_AXES[axis]:
            raise InvalidPayload(f"{value!r} is not a valid {axis}", field=axis)
    return store.find_all(**filters)


def find_by_token(store, kind, token):
    """Token-gated lookup for the self-service forms."""
    if not token:
        raise NotFound("Invalid or expired link")
    candidate = store.find_one(**{TOKEN_KINDS[kind]: token})
    if candidate is None:
        logger.warning("no candidate for %s token", kind)
        raise NotFound("Invalid or expired link")
    return candidate


def remove_candidate(store, candidate_id):
    if not store.delete(candidate_id):
        raise NotFound("Candidate not found", candidate_id=str(candidate_id))
    logger.info("candidate removed id=%s", candidate_id)


def update_fields(store, candidate_id, updates):
    """Partial update; gate axes may only be activated here."""
    activating_eval = isinstance(updates, dict) and updates.get("eval_status") == ACTIVE
    lookup = store.get_tolerant if activating_eval else store.get
    candidate = _require(lookup(candidate_id), candidate_id)
    if isinstance(updates, dict) and updates.get("id") == candidate.id:
        # full records sent back by the admin screen carry their own id
        updates = {k: v for k, v in updates.items() if k != "id"}
    fields = _clean_updates(updates)
    expect = {}
    for axis in GATE_TOKENS:
        if axis not in fields:
            continue
        if fields[axis] == getattr(candidate, axis) and fields[axis] != ACTIVE:
            del fields[axis]
            continue
        fields.update(_activation(candidate, axis, fields[axis]))
        expect[axis] = getattr(candidate, axis)
    if not fields:
        return candidate
    return _guarded_update(store, candidate, fields, expect)


# --- gates -------------------------------------------------------------------

def activate_gate(store, candidate_id, axis, tolerant=False):
    lookup = store.get_tolerant if tolerant else store.get
    candidate = _require(lookup(candidate_id), candidate_id)
    fields = {axis: ACTIVE}
    fields.update(_activation(candidate, axis, ACTIVE))
    return _guarded_update(store, candidate, fields, {axis: getattr(candidate, axis)})


def activate_form(store, candidate_id):
    return activate_gate(store, candidate_id, "form_status")


def activate_evaluation(store, candidate_id):
    # evaluation links are sent for records that may carry a non-canonical id
    return activate_gate(store, candidate_id, "eval_status", tolerant=True)


def submit_form(store, storage, candidate_id, answers, token=None, now=None):
    candidate = _require(store.get(candidate_id), candidate_id)
    _check_gate(candidate, "form_status", ACTIVE, token)
    answers = _answers(answers)
    now = now or _utcnow()
    url = generate_artifact(storage, RECRUITMENT_FORM, candidate.id, {
        "candidate_id": candidate.id,
        "answers": answers,
        "submitted_at": now,
    }, now=now)
    fields = {
        "form_status": SUBMITTED,
        "form_answers": answers,
        "qualified_form_path": url,
        "form_submitted_at": _naive(now),
    }
    updated = _guarded_update(store, candidate, fields, {"form_status": ACTIVE})
    logger.info("recruitment form submitted candidate=%s", candidate.id)
    return updated


def submit_evaluation(store, candidate_id, answers, token=None, now=None):
    candidate = _require(store.get(candidate_id), candidate_id)
    _check_gate(candidate, "eval_status", ACTIVE, token)
    fields = {
        "eval_status": SUBMITTED,
        "eval_answers": _answers(answers),
        "eval_submitted_at": _naive(now or _utcnow()),
    }
    updated = _guarded_update(store, candidate, fields, {"eval_status": ACTIVE})
    logger.info("evaluation submitted candidate=%s", candidate.id)
    return updated


def _clean_correction(correction):
    if not isinstance(correction, dict):
        raise InvalidPayload("Correction must be an object keyed by question id")
    unknown = set(correction) - set(EVALUATION_QUESTION_IDS)
    if unknown:
        raise InvalidPayload("Unknown question ids", questions=sorted(unknown))
    missing = [qid for qid in EVALUATION_QUESTION_IDS if qid not in correction or correction[qid] is None]
    if missing:
        raise InvalidTransition("Correction must cover every question", missing=missing)
    bad = [qid for qid, v in correction.items() if not isinstance(v, bool)]
    if bad:
        raise InvalidPayload("Corrections must be true or false", questions=bad)
    return {qid: correction[qid] for qid in EVALUATION_QUESTION_IDS}


def score_correction(correction):
    return sum(1 for v in correction.values() if v is True)


def correct_evaluation(store, storage, candidate_id, correction, now=None):
    candidate = _require(store.get(candidate_id), candidate_id)
    _check_gate(candidate, "eval_status", SUBMITTED)
    correction = _clean_correction(correction)
    score = score_correction(correction)
    now = now or _utcnow()
    url = generate_artifact(storage, EVALUATION_CORRECTION, candidate.id, {
        "candidate_name": candidate.display_name,
        "answers": candidate.eval_answers or {},
        "correction": correction,
        "score": score,
    }, now=now)
    fields = {
        "eval_status": CORRECTED,
        "eval_correction": correction,
        "eval_score": score,
        "eval_pdf_path": url,
        "eval_corrected_at": _naive(now),
    }
    updated = _guarded_update(store, candidate, fields, {"eval_status": SUBMITTED})
    logger.info("evaluation corrected candidate=%s score=%d/%d",
                candidate.id, score, len(EVALUATION_QUESTION_IDS))
    return updated


def transition(store, candidate_id, axis, value, storage=None, payload=None, token=None):
    """Route a requested axis value to the operation that owns it."""
    if axis not in STATUS_AXES:
        raise InvalidPayload(f"Unknown status axis {axis}", field=axis)
    if axis in GATE_TOKENS and value == ACTIVE:
        return activate_gate(store, candidate_id, axis, tolerant=(axis == "eval_status"))
    if axis == "form_status" and value == SUBMITTED:
        return submit_form(store, storage, candidate_id, payload, token=token)
    if axis == "eval_status" and value == SUBMITTED:
        return submit_evaluation(store, candidate_id, payload, token=token)
    if axis == "eval_status" and value == CORRECTED:
        return correct_evaluation(store, storage, candidate_id, payload)
    return update_fields(store, candidate_id, {axis: value})


# --- uploads -----------------------------------------------------------------

def attach_report(store, storage, candidate_id, filename, data, content_type, now=None):
    """Store an internship report for a candidate and record its URL."""
    candidate = _require(store.get(candidate_id), candidate_id)
    if content_type not in REPORT_CONTENT_TYPES:
        raise InvalidPayload("Only PDF or Word documents are allowed for reports")
    if not data:
        raise InvalidPayload("No file uploaded")
    now = now or _utcnow()
    ext = os.path.splitext(filename or "")[1].lower()
    key = f"rapport-{candidate.id}-{int(now.timestamp() * 1000)}{ext}"
    url = storage.put(storage.bucket("reports"), key, data, content_type=content_type)
    return _guarded_update(store, candidate, {"rapport_stage_path": url}, {})


def store_cv(storage, filename, data, now=None):
    """Keep the uploaded CV next to the extracted record; returns its URL."""
    now = now or _utcnow()
    safe = secure_filename(filename or "") or "cv.pdf"
    key = f"{int(now.timestamp() * 1000)}-{safe}"
    return storage.put(storage.bucket("cv"), key, data, content_type="application/pdf")
