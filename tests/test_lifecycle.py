import re
import uuid
from datetime import datetime, timezone

import pytest

from cvflow.errors import InvalidPayload, InvalidTransition, NotFound, UploadError
from cvflow.extensions import db
from cvflow.models import Candidate
from cvflow.services import lifecycle
from cvflow.services.questions import EVALUATION_QUESTION_IDS, RECRUITMENT_QUESTIONS

NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)

FORM_ANSWERS = {key: f"answer to {key}" for key, _ in RECRUITMENT_QUESTIONS}


def _candidate(store, **extra):
    data = {"last_name": "Benali", "first_name": "Yasmine",
            "english_level": {"read": "Bien", "written": "Moyen", "spoken": "-"}}
    data.update(extra)
    return lifecycle.create_candidate(store, data)


def _snapshot(store, candidate_id):
    db.session.expire_all()
    return store.get(candidate_id).to_dict()


def _correction(true_count):
    return {qid: i < true_count for i, qid in enumerate(EVALUATION_QUESTION_IDS)}


def test_create_sets_status_defaults(store):
    c = _candidate(store, service="Études")
    assert re.fullmatch(r"[0-9a-f]{32}", c.id)
    assert c.application_status == "pending"
    assert c.form_status == "inactive"
    assert c.eval_status == "inactive"
    assert c.hiring_status == "awaiting-client-validation"
    assert c.hiring_final_status == "unset"
    assert c.form_token is None and c.eval_token is None
    assert c.birth_date == "-"
    assert c.service == "Études"


def test_create_rejects_system_fields(store):
    with pytest.raises(InvalidPayload):
        _candidate(store, form_token="abc")


def test_scenario_recruitment_form(store, storage):
    c = _candidate(store)
    c = lifecycle.activate_form(store, c.id)
    token = c.form_token
    assert c.form_status == "active"
    assert re.fullmatch(r"[0-9a-f]{32}", token)

    assert lifecycle.find_by_token(store, "form", token).id == c.id

    c = lifecycle.submit_form(store, storage, c.id, FORM_ANSWERS, token=token, now=NOW)
    assert c.form_status == "submitted"
    assert c.form_answers == FORM_ANSWERS
    assert c.form_submitted_at == datetime(2026, 10, 19, 9, 30)
    assert c.qualified_form_path.endswith(f"/qualified-candidats/form-{c.id}-{int(NOW.timestamp() * 1000)}.pdf")
    assert storage.get("qualified-candidats", c.qualified_form_path.rsplit("/", 1)[-1]).startswith(b"%PDF")


def test_scenario_evaluation_correction(store, storage):
    c = _candidate(store)
    c = lifecycle.activate_evaluation(store, c.id)
    assert c.eval_status == "active" and c.eval_token

    answers = {qid: "réponse" for qid in EVALUATION_QUESTION_IDS}
    c = lifecycle.submit_evaluation(store, c.id, answers, token=c.eval_token)
    assert c.eval_status == "submitted"
    assert c.eval_submitted_at is not None

    correction = _correction(30)
    correction["q5"] = False
    c = lifecycle.correct_evaluation(store, storage, c.id, correction, now=NOW)
    assert c.eval_status == "corrected"
    assert c.eval_score == 29
    assert c.eval_correction == correction
    assert "/qualified-candidats/eval-" in c.eval_pdf_path

    with pytest.raises(InvalidTransition):
        lifecycle.correct_evaluation(store, storage, c.id, _correction(38))
    assert _snapshot(store, c.id)["eval_score"] == 29


def test_second_submission_is_rejected_and_changes_nothing(store, storage):
    c = lifecycle.activate_form(store, _candidate(store).id)
    lifecycle.submit_form(store, storage, c.id, FORM_ANSWERS, token=c.form_token, now=NOW)
    before = _snapshot(store, c.id)

    with pytest.raises(InvalidTransition):
        lifecycle.submit_form(store, storage, c.id, {"presentezVous": "other"}, token=c.form_token)
    assert _snapshot(store, c.id) == before


def test_submission_requires_active_gate(store, storage):
    c = _candidate(store)
    before = _snapshot(store, c.id)
    with pytest.raises(InvalidTransition):
        lifecycle.submit_form(store, storage, c.id, FORM_ANSWERS)
    with pytest.raises(InvalidTransition):
        lifecycle.submit_evaluation(store, c.id, {"q1": "x"})
    assert _snapshot(store, c.id) == before


def test_submission_with_wrong_token(store, storage):
    c = lifecycle.activate_form(store, _candidate(store).id)
    with pytest.raises(NotFound):
        lifecycle.submit_form(store, storage, c.id, FORM_ANSWERS, token="0" * 32)
    assert _snapshot(store, c.id)["form_status"] == "active"


def test_activation_is_idempotent(store):
    c = _candidate(store)
    first = lifecycle.activate_form(store, c.id).form_token
    second = lifecycle.activate_form(store, c.id).form_token
    assert first == second

    eval_first = lifecycle.activate_evaluation(store, c.id).eval_token
    assert lifecycle.activate_evaluation(store, c.id).eval_token == eval_first
    assert eval_first != first


def test_activation_after_submission_is_rejected(store, storage):
    c = lifecycle.activate_form(store, _candidate(store).id)
    lifecycle.submit_form(store, storage, c.id, FORM_ANSWERS, now=NOW)
    with pytest.raises(InvalidTransition):
        lifecycle.activate_form(store, c.id)


def test_tokens_are_unique_per_candidate_and_gate(store):
    tokens = set()
    for _ in range(5):
        c = _candidate(store)
        tokens.add(lifecycle.activate_form(store, c.id).form_token)
        tokens.add(lifecycle.activate_evaluation(store, c.id).eval_token)
    assert len(tokens) == 10


def test_evaluation_activation_accepts_non_canonical_ids(store):
    c = _candidate(store)
    dashed = str(uuid.UUID(hex=c.id)).upper()
    assert lifecycle.activate_evaluation(store, dashed).id == c.id
    with pytest.raises(NotFound):
        lifecycle.activate_form(store, dashed)


def test_evaluation_activation_falls_back_to_raw_id(store):
    db.session.add(Candidate(id="legacy-42", last_name="Old", first_name="Record"))
    db.session.commit()
    assert lifecycle.activate_evaluation(store, "legacy-42").eval_status == "active"


def test_unknown_candidate(store, storage):
    with pytest.raises(NotFound):
        lifecycle.activate_form(store, "f" * 32)
    with pytest.raises(NotFound):
        lifecycle.submit_form(store, storage, "f" * 32, FORM_ANSWERS)
    with pytest.raises(NotFound):
        lifecycle.remove_candidate(store, "f" * 32)
    with pytest.raises(NotFound):
        lifecycle.find_by_token(store, "eval", "nope")


def test_failed_upload_leaves_gate_untouched(store, storage, monkeypatch):
    c = lifecycle.activate_form(store, _candidate(store).id)

    def broken_put(*args, **kwargs):
        raise UploadError("Upload to qualified-candidats failed")

    monkeypatch.setattr(storage, "put", broken_put)
    with pytest.raises(UploadError):
        lifecycle.submit_form(store, storage, c.id, FORM_ANSWERS, token=c.form_token)
    after = _snapshot(store, c.id)
    assert after["form_status"] == "active"
    assert after["qualified_form_path"] is None
    assert after["form_answers"] is None


@pytest.mark.parametrize("true_count", [0, 1, 17, 38])
def test_score_counts_true_answers(store, storage, true_count):
    c = lifecycle.activate_evaluation(store, _candidate(store).id)
    lifecycle.submit_evaluation(store, c.id, {"q1": "a"})
    c = lifecycle.correct_evaluation(store, storage, c.id, _correction(true_count))
    assert c.eval_score == true_count


def test_incomplete_correction_is_rejected(store, storage):
    c = lifecycle.activate_evaluation(store, _candidate(store).id)
    lifecycle.submit_evaluation(store, c.id, {"q1": "a"})
    correction = _correction(10)
    del correction["q38"]
    with pytest.raises(InvalidTransition) as exc:
        lifecycle.correct_evaluation(store, storage, c.id, correction)
    assert exc.value.details["missing"] == ["q38"]
    assert _snapshot(store, c.id)["eval_status"] == "submitted"

    with pytest.raises(InvalidPayload):
        lifecycle.correct_evaluation(store, storage, c.id, dict(_correction(1), q1="yes"))


def test_update_fields_overwrites_plain_axes(store):
    c = _candidate(store)
    c = lifecycle.update_fields(store, c.id, {
        "application_status": "accepted",
        "hiring_status": "hired",
        "recruiter_comment": "  solid profile ",
        "company": "",
    })
    assert c.application_status == "accepted"
    assert c.hiring_status == "hired"
    assert c.recruiter_comment == "solid profile"
    assert c.company == "-"
    c = lifecycle.update_fields(store, c.id, {"application_status": "pending"})
    assert c.application_status == "pending"


def test_update_fields_activates_gate_with_token(store):
    c = lifecycle.update_fields(store, _candidate(store).id, {"form_status": "active"})
    assert c.form_status == "active"
    assert c.form_token


@pytest.mark.parametrize("updates,error", [
    ({"form_status": "submitted"}, InvalidTransition),
    ({"eval_status": "corrected"}, InvalidTransition),
    ({"form_token": "x"}, InvalidPayload),
    ({"eval_score": 38}, InvalidPayload),
    ({"hiring_status": "maybe"}, InvalidPayload),
    ({"favourite_color": "blue"}, InvalidPayload),
    ({"id": "0" * 32}, InvalidPayload),
])
def test_update_fields_rejections(store, updates, error):
    c = _candidate(store)
    before = _snapshot(store, c.id)
    with pytest.raises(error):
        lifecycle.update_fields(store, c.id, updates)
    assert _snapshot(store, c.id) == before


def test_gate_never_moves_backward(store, storage):
    c = lifecycle.activate_form(store, _candidate(store).id)
    lifecycle.submit_form(store, storage, c.id, FORM_ANSWERS, now=NOW)
    with pytest.raises(InvalidTransition):
        lifecycle.update_fields(store, c.id, {"form_status": "inactive"})
    # resending the current value is a no-op
    assert lifecycle.update_fields(store, c.id, {"form_status": "submitted"}).form_status == "submitted"


def test_transition_routes_to_owning_operation(store, storage):
    c = _candidate(store)
    c = lifecycle.transition(store, c.id, "eval_status", "active")
    c = lifecycle.transition(store, c.id, "eval_status", "submitted", payload={"q1": "a"})
    c = lifecycle.transition(store, c.id, "eval_status", "corrected", storage=storage,
                             payload=_correction(5))
    assert c.eval_score == 5
    c = lifecycle.transition(store, c.id, "hiring_final_status", "confirmed")
    assert c.hiring_final_status == "confirmed"
    with pytest.raises(InvalidPayload):
        lifecycle.transition(store, c.id, "mood", "happy")


def test_list_and_remove(store):
    a = _candidate(store)
    b = _candidate(store)
    lifecycle.update_fields(store, b.id, {"application_status": "accepted"})
    accepted = lifecycle.list_candidates(store, application_status="accepted")
    assert [c.id for c in accepted] == [b.id]
    assert len(lifecycle.list_candidates(store)) == 2

    lifecycle.remove_candidate(store, a.id)
    assert store.get(a.id) is None


def test_attach_report(store, storage):
    c = _candidate(store)
    c = lifecycle.attach_report(store, storage, c.id, "Rapport Final.PDF", b"%PDF-1.4 report",
                                "application/pdf", now=NOW)
    key = f"rapport-{c.id}-{int(NOW.timestamp() * 1000)}.pdf"
    assert c.rapport_stage_path.endswith(f"/rapports-stage/{key}")
    assert storage.get("rapports-stage", key) == b"%PDF-1.4 report"

    with pytest.raises(InvalidPayload):
        lifecycle.attach_report(store, storage, c.id, "notes.txt", b"hi", "text/plain")


def test_store_cv_sanitizes_filename(storage):
    url = lifecycle.store_cv(storage, "../../CV Yasmine.pdf", b"%PDF", now=NOW)
    key = url.rsplit("/", 1)[-1]
    assert key == f"{int(NOW.timestamp() * 1000)}-CV_Yasmine.pdf"
    assert storage.get("cvs", key) == b"%PDF"


def test_submission_with_non_ascii_token(store, storage):
    c = lifecycle.activate_form(store, _candidate(store).id)
    before = _snapshot(store, c.id)
    with pytest.raises(NotFound):
        lifecycle.submit_form(store, storage, c.id, FORM_ANSWERS, token="été")
    assert _snapshot(store, c.id) == before


def test_update_fields_activates_evaluation_by_non_canonical_id(store):
    c = _candidate(store)
    dashed = str(uuid.UUID(hex=c.id)).upper()
    updated = lifecycle.update_fields(store, dashed, {"eval_status": "active"})
    assert updated.id == c.id
    assert updated.eval_status == "active" and updated.eval_token
    with pytest.raises(NotFound):
        lifecycle.update_fields(store, dashed, {"form_status": "active"})


def test_attach_report_to_candidate_removed_during_upload(store, storage, monkeypatch):
    c = _candidate(store)
    put = storage.put

    def put_then_remove(*args, **kwargs):
        url = put(*args, **kwargs)
        store.delete(c.id)
        return url

    monkeypatch.setattr(storage, "put", put_then_remove)
    with pytest.raises(NotFound):
        lifecycle.attach_report(store, storage, c.id, "rapport.pdf", b"%PDF", "application/pdf")
