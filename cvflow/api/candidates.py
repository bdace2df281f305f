"""JSON endpoints for candidates. Handlers only translate HTTP to service calls;
errors raised by the services are rendered by the app-level error handler."""
from flask import current_app, jsonify, request

from . import bp
from ..errors import InvalidPayload, ModelError
from ..extensions import clients, db
from ..models.candidate import STATUS_AXES
from ..services import lifecycle
from ..services.extraction import extract_pdf
from ..services.store import CandidateStore


def _store():
    return CandidateStore(db.session)


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        raise InvalidPayload("Expected a JSON body")
    return data


def _ok(candidate=None, status=200, **extra):
    body = {"success": True}
    if candidate is not None:
        body["data"] = candidate.to_dict()
    body.update(extra)
    return jsonify(body), status


@bp.get("/health")
def health():
    try:
        models = clients.llm.list_models()
    except ModelError as e:
        current_app.logger.warning('Ollama health check failed: %s', e.message)
        return jsonify({"success": True, "ollamaRunning": False, "error": e.message})
    return jsonify({"success": True, "ollamaRunning": True, "modelCount": len(models)})


@bp.post("/extract")
def extract_cv():
    f = request.files.get("cv")
    if f is None or not f.filename:
        raise InvalidPayload("No PDF file uploaded")
    if f.mimetype != "application/pdf" and not f.filename.lower().endswith(".pdf"):
        raise InvalidPayload("Only PDF files are allowed!")
    data = f.read()
    if len(data) > current_app.config.get("MAX_CV_BYTES", 10 * 1024 * 1024):
        raise InvalidPayload("CV exceeds the 10MB limit")

    current_app.logger.info('Processing CV: %s (%d bytes)', f.filename, len(data))
    fields, text = extract_pdf(
        data,
        clients.llm,
        marker=current_app.config.get("FORM_MARKER"),
        window=current_app.config.get("FORM_WINDOW_CHARS"),
    )
    cv_link = lifecycle.store_cv(clients.storage, f.filename, data)
    return jsonify({
        "success": True,
        "data": fields,
        "cv_link": cv_link,
        "file_name": cv_link.rsplit("/", 1)[-1],
        "pdf_text": text[:500],
    })


@bp.post("/save")
def save_candidate():
    c = lifecycle.create_candidate(_store(), _json_body())
    return _ok(c, status=201, message="CV data saved successfully")


@bp.get("/", strict_slashes=False)
def list_candidates():
    filters = {k: v for k, v in request.args.items() if k in STATUS_AXES}
    items = lifecycle.list_candidates(_store(), **filters)
    return jsonify({"success": True, "count": len(items), "data": [c.to_dict() for c in items]})


@bp.get("/token/<token>")
def get_by_form_token(token):
    return _ok(lifecycle.find_by_token(_store(), "form", token))


@bp.get("/eval/token/<token>")
def get_by_eval_token(token):
    return _ok(lifecycle.find_by_token(_store(), "eval", token))


@bp.get("/<candidate_id>")
def get_candidate(candidate_id):
    return _ok(lifecycle.get_candidate(_store(), candidate_id))


@bp.put("/<candidate_id>")
def update_candidate(candidate_id):
    c = lifecycle.update_fields(_store(), candidate_id, _json_body())
    return _ok(c, message="Updated successfully")


@bp.put("/eval/activate/<candidate_id>")
def activate_evaluation(candidate_id):
    return _ok(lifecycle.activate_evaluation(_store(), candidate_id))


@bp.patch("/qualified/<candidate_id>")
def submit_recruitment_form(candidate_id):
    c = lifecycle.submit_form(_store(), clients.storage, candidate_id, _json_body(),
                              token=request.args.get("token"))
    return _ok(c, pdfUrl=c.qualified_form_path)


@bp.patch("/eval/submit/<candidate_id>")
def submit_evaluation(candidate_id):
    c = lifecycle.submit_evaluation(_store(), candidate_id, _json_body(),
                                    token=request.args.get("token"))
    return _ok(c, message="Evaluation submitted")


@bp.patch("/eval/correct/<candidate_id>")
def correct_evaluation(candidate_id):
    body = _json_body()
    # older clients wrap the map and send their own score; the score is recomputed
    correction = body.get("evalCorrection", body) if isinstance(body, dict) else body
    c = lifecycle.correct_evaluation(_store(), clients.storage, candidate_id, correction)
    return _ok(c, pdfUrl=c.eval_pdf_path)


@bp.post("/<candidate_id>/upload-rapport-stage")
def upload_rapport_stage(candidate_id):
    f = request.files.get("rapportStage")
    if f is None or not f.filename:
        raise InvalidPayload("No file uploaded.")
    c = lifecycle.attach_report(_store(), clients.storage, candidate_id,
                                f.filename, f.read(), f.mimetype)
    return _ok(c, filePath=c.rapport_stage_path)


@bp.delete("/<candidate_id>")
def delete_candidate(candidate_id):
    lifecycle.remove_candidate(_store(), candidate_id)
    return jsonify({"success": True, "message": "Candidate deleted successfully"})
