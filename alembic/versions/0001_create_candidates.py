"""create candidates table

Revision ID: 0001_create_candidates
Revises: None
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_create_candidates"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "candidates",
        sa.Column("id", sa.String(32), primary_key=True),
        # extracted from the CV form
        sa.Column("last_name", sa.String(255), nullable=False, server_default="-"),
        sa.Column("first_name", sa.String(255), nullable=False, server_default="-"),
        sa.Column("birth_date", sa.String(64), nullable=False, server_default="-"),
        sa.Column("address", sa.String(512), nullable=False, server_default="-"),
        sa.Column("current_position", sa.String(255), nullable=False, server_default="-"),
        sa.Column("company", sa.String(255), nullable=False, server_default="-"),
        sa.Column("hire_date", sa.String(64), nullable=False, server_default="-"),
        sa.Column("salary", sa.String(64), nullable=False, server_default="-"),
        sa.Column("last_diploma", sa.String(255), nullable=False, server_default="-"),
        sa.Column("english_level", sa.JSON),
        # admin notes
        sa.Column("cv_link", sa.String(512)),
        sa.Column("recruiter_comment", sa.Text),
        sa.Column("service", sa.String(80)),
        sa.Column("agreed_salary", sa.String(64)),
        sa.Column("training_date", sa.String(32)),
        sa.Column("evaluation_date", sa.String(32)),
        sa.Column("departure_date", sa.String(32)),
        # status axes
        sa.Column("application_status", sa.String(30), nullable=False, server_default="pending"),
        sa.Column("form_status", sa.String(30), nullable=False, server_default="inactive"),
        sa.Column("eval_status", sa.String(30), nullable=False, server_default="inactive"),
        sa.Column("hiring_status", sa.String(30), nullable=False, server_default="awaiting-client-validation"),
        sa.Column("hiring_final_status", sa.String(30), nullable=False, server_default="unset"),
        # gates
        sa.Column("form_token", sa.String(64), unique=True),
        sa.Column("eval_token", sa.String(64), unique=True),
        sa.Column("form_answers", sa.JSON),
        sa.Column("form_submitted_at", sa.DateTime),
        sa.Column("qualified_form_path", sa.String(512)),
        sa.Column("eval_answers", sa.JSON),
        sa.Column("eval_submitted_at", sa.DateTime),
        sa.Column("eval_correction", sa.JSON),
        sa.Column("eval_score", sa.Integer),
        sa.Column("eval_corrected_at", sa.DateTime),
        sa.Column("eval_pdf_path", sa.String(512)),
        sa.Column("rapport_stage_path", sa.String(512)),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index("ix_candidates_application_status", "candidates", ["application_status"])
    op.create_index("ix_candidates_hiring_status", "candidates", ["hiring_status"])


def downgrade():
    op.drop_index("ix_candidates_hiring_status", table_name="candidates")
    op.drop_index("ix_candidates_application_status", table_name="candidates")
    op.drop_table("candidates")
