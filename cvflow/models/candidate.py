from ..extensions import db
from .base import TimestampMixin

UNSET = "-"

# status axes: first value is the default
APPLICATION_STATUSES = ("pending", "accepted", "rejected")
FORM_STATUSES = ("inactive", "active", "submitted")
EVAL_STATUSES = ("inactive", "active", "submitted", "corrected")
HIRING_STATUSES = ("awaiting-client-validation", "hired", "not-hired")
HIRING_FINAL_STATUSES = ("unset", "confirmed", "training-extended")

STATUS_AXES = {
    "application_status": APPLICATION_STATUSES,
    "form_status": FORM_STATUSES,
    "eval_status": EVAL_STATUSES,
    "hiring_status": HIRING_STATUSES,
    "hiring_final_status": HIRING_FINAL_STATUSES,
}

# gate axis -> token column
GATE_TOKENS = {
    "form_status": "form_token",
    "eval_status": "eval_token",
}

EXTRACTED_FIELDS = (
    "last_name",
    "first_name",
    "birth_date",
    "address",
    "current_position",
    "company",
    "hire_date",
    "salary",
    "last_diploma",
)
LANGUAGE_FIELD = "english_level"
LANGUAGE_KEYS = ("read", "written", "spoken")

# set by admins through plain partial updates
FREEFORM_FIELDS = (
    "cv_link",
    "recruiter_comment",
    "service",
    "agreed_salary",
    "training_date",
    "evaluation_date",
    "departure_date",
)


class Candidate(db.Model, TimestampMixin):
    __tablename__ = "candidates"

    id = db.Column(db.String(32), primary_key=True)

    # extracted from the CV form
    last_name = db.Column(db.String(255), nullable=False, default=UNSET)
    first_name = db.Column(db.String(255), nullable=False, default=UNSET)
    birth_date = db.Column(db.String(64), nullable=False, default=UNSET)
    address = db.Column(db.String(512), nullable=False, default=UNSET)
    current_position = db.Column(db.String(255), nullable=False, default=UNSET)
    company = db.Column(db.String(255), nullable=False, default=UNSET)
    hire_date = db.Column(db.String(64), nullable=False, default=UNSET)
    salary = db.Column(db.String(64), nullable=False, default=UNSET)
    last_diploma = db.Column(db.String(255), nullable=False, default=UNSET)
    english_level = db.Column(db.JSON)  # {"read": "Moyen", "written": "-", "spoken": "Bien"}

    # admin notes
    cv_link = db.Column(db.String(512))
    recruiter_comment = db.Column(db.Text)
    service = db.Column(db.String(80))
    agreed_salary = db.Column(db.String(64))
    training_date = db.Column(db.String(32))
    evaluation_date = db.Column(db.String(32))
    departure_date = db.Column(db.String(32))

    # status axes
    application_status = db.Column(db.String(30), nullable=False, default=APPLICATION_STATUSES[0], index=True)
    form_status = db.Column(db.String(30), nullable=False, default=FORM_STATUSES[0])
    eval_status = db.Column(db.String(30), nullable=False, default=EVAL_STATUSES[0])
    hiring_status = db.Column(db.String(30), nullable=False, default=HIRING_STATUSES[0], index=True)
    hiring_final_status = db.Column(db.String(30), nullable=False, default=HIRING_FINAL_STATUSES[0])

    # gate tokens and submissions
    form_token = db.Column(db.String(64), unique=True)
    eval_token = db.Column(db.String(64), unique=True)

    form_answers = db.Column(db.JSON)
    form_submitted_at = db.Column(db.DateTime)
    qualified_form_path = db.Column(db.String(512))

    eval_answers = db.Column(db.JSON)
    eval_submitted_at = db.Column(db.DateTime)
    eval_correction = db.Column(db.JSON)  # {"q1": true, "q2": false, ...}
    eval_score = db.Column(db.Integer)
    eval_corrected_at = db.Column(db.DateTime)
    eval_pdf_path = db.Column(db.String(512))

    rapport_stage_path = db.Column(db.String(512))

    SERIALIZED = (
        ("id",) + EXTRACTED_FIELDS + (LANGUAGE_FIELD,) + FREEFORM_FIELDS
        + tuple(STATUS_AXES) + tuple(GATE_TOKENS.values())
        + ("form_answers", "form_submitted_at", "qualified_form_path",
           "eval_answers", "eval_submitted_at", "eval_correction", "eval_score",
           "eval_corrected_at", "eval_pdf_path", "rapport_stage_path",
           "created_at", "updated_at")
    )

    def to_dict(self):
        out = {}
        for name in self.SERIALIZED:
            value = getattr(self, name)
            if hasattr(value, "isoformat"):
                value = value.isoformat()
            out[name] = value
        return out

    @property
    def display_name(self):
        parts = [p for p in (self.first_name, self.last_name) if p and p != UNSET]
        return " ".join(parts) or self.id

    def __repr__(self) -> str:
        return f"<Candidate id={self.id} name={self.last_name!r} form={self.form_status} eval={self.eval_status}>"
