"""PDF artifacts for submitted forms.

Rendering goes into an in-memory buffer which is uploaded in one call once
the document is complete; the caller only ever sees a finished URL or an
error, never a half-written object.
"""
import io
import logging
from datetime import datetime, timezone
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer
from reportlab.platypus.flowables import HRFlowable

from ..errors import RenderError
from .questions import EVALUATION_QUESTIONS, RECRUITMENT_QUESTIONS

logger = logging.getLogger(__name__)

RECRUITMENT_FORM = "recruitment_form"
EVALUATION_CORRECTION = "evaluation_correction"

KEY_PREFIXES = {
    RECRUITMENT_FORM: "form",
    EVALUATION_CORRECTION: "eval",
}

TRUE_COLOR = colors.HexColor("#38a169")
FALSE_COLOR = colors.HexColor("#e53e3e")
HEADING_COLOR = colors.HexColor("#2d3748")
ANSWER_COLOR = colors.HexColor("#1a202c")
MUTED_COLOR = colors.HexColor("#4a5568")
RULE_COLOR = colors.HexColor("#cbd5e0")


def _styles():
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle("title", parent=base["Title"], fontName="Helvetica-Bold",
                                fontSize=22, leading=28, alignment=TA_CENTER),
        "meta": ParagraphStyle("meta", parent=base["Normal"], fontSize=11, alignment=TA_RIGHT),
        "info": ParagraphStyle("info", parent=base["Normal"], fontSize=13, leading=18),
        "question": ParagraphStyle("question", parent=base["Normal"], fontName="Helvetica-Bold",
                                   fontSize=13, leading=17, textColor=HEADING_COLOR),
        "answer": ParagraphStyle("answer", parent=base["Normal"], fontSize=11, leading=15,
                                 leftIndent=20, textColor=ANSWER_COLOR),
        "eval_question": ParagraphStyle("eval_question", parent=base["Normal"], fontName="Helvetica-Bold",
                                        fontSize=10, leading=13, textColor=HEADING_COLOR),
        "eval_answer": ParagraphStyle("eval_answer", parent=base["Normal"], fontSize=10, leading=13,
                                      textColor=MUTED_COLOR),
    }


def _text(value, default="-"):
    if value is None or value == "":
        value = default
    # Paragraph parses markup, so user text must be escaped
    return escape(str(value)).replace("\n", "<br/>")


def _recruitment_story(data, styles):
    answers = data.get("answers") or {}
    submitted_at = data.get("submitted_at") or datetime.now(timezone.utc)
    story = [
        Paragraph("Questionnaire de Recrutement", styles["title"]),
        Spacer(1, 18),
        Paragraph(f"ID Candidat: {_text(data.get('candidate_id'))}", styles["meta"]),
        Paragraph(f"Date de soumission: {submitted_at.strftime('%d/%m/%Y')}", styles["meta"]),
        Spacer(1, 24),
    ]
    for key, label in RECRUITMENT_QUESTIONS:
        story += [
            Paragraph(_text(label), styles["question"]),
            Spacer(1, 6),
            Paragraph(_text(answers.get(key)), styles["answer"]),
            Spacer(1, 12),
            HRFlowable(width="100%", thickness=0.5, color=RULE_COLOR),
            Spacer(1, 12),
        ]
    return story


def _correction_story(data, styles):
    answers = data.get("answers") or {}
    correction = data.get("correction") or {}
    story = [
        Paragraph("Évaluation Corrigée - Chargé d'Étude", styles["title"]),
        Spacer(1, 12),
        Paragraph(f"Candidat : {_text(data.get('candidate_name'), default='')}", styles["info"]),
        Paragraph(f"Note Finale : {int(data.get('score') or 0)}/{len(EVALUATION_QUESTIONS)}", styles["info"]),
        Spacer(1, 12),
    ]
    for qid, label in EVALUATION_QUESTIONS:
        ok = bool(correction.get(qid))
        verdict = ParagraphStyle(f"verdict_{qid}", parent=styles["eval_answer"],
                                 textColor=TRUE_COLOR if ok else FALSE_COLOR)
        story += [
            Paragraph(_text(label), styles["eval_question"]),
            Paragraph(f"Réponse : {_text(answers.get(qid), default='N/A')}", styles["eval_answer"]),
            Paragraph(f"Correction : {'VRAI' if ok else 'FAUX'}", verdict),
            Spacer(1, 6),
        ]
    return story


_STORIES = {
    RECRUITMENT_FORM: _recruitment_story,
    EVALUATION_CORRECTION: _correction_story,
}


def render(kind: str, data: dict) -> bytes:
    """Render ``kind`` to PDF bytes. Pagination is handled by the layout."""
    if kind not in _STORIES:
        raise RenderError(f"Unknown artifact kind: {kind}")
    buf = io.BytesIO()
    try:
        doc = SimpleDocTemplate(buf, pagesize=A4, leftMargin=50, rightMargin=50,
                                topMargin=50, bottomMargin=50,
                                title=kind.replace("_", " ").title())
        doc.build(_STORIES[kind](data, _styles()))
        return buf.getvalue()
    except RenderError:
        raise
    except Exception as e:
        logger.exception("PDF rendering failed kind=%s", kind)
        raise RenderError(f"Could not render {kind}: {e}") from e
    finally:
        buf.close()


def artifact_key(kind: str, candidate_id: str, now: datetime) -> str:
    return f"{KEY_PREFIXES[kind]}-{candidate_id}-{int(now.timestamp() * 1000)}.pdf"


def generate_artifact(storage, kind: str, candidate_id: str, data: dict, now=None) -> str:
    """Render and upload; returns the public URL of the stored PDF."""
    now = now or datetime.now(timezone.utc)
    pdf = render(kind, data)
    bucket = storage.bucket("artifacts")
    key = artifact_key(kind, candidate_id, now)
    url = storage.put(bucket, key, pdf, content_type="application/pdf")
    logger.info("artifact stored kind=%s candidate=%s url=%s", kind, candidate_id, url)
    return url
