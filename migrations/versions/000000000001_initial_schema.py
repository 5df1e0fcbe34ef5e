"""initial schema: question hierarchy, evaluations, custom fields

Revision ID: 000000000001
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "000000000001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    # hierarchy: property type -> category -> question -> answer
    op.create_table(
        "property_types",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name_ro", sa.String(), nullable=False),
        sa.Column("name_en", sa.String(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "question_categories",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name_ro", sa.String(), nullable=False),
        sa.Column("name_en", sa.String(), nullable=True),
        sa.Column("property_type_id", sa.Integer(), sa.ForeignKey("property_types.id"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_question_categories_property_type_id", "question_categories", ["property_type_id"])

    op.create_table(
        "questions",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("text_ro", sa.String(), nullable=False),
        sa.Column("text_en", sa.String(), nullable=True),
        sa.Column("weight", sa.Integer(), nullable=False),  # 1..10
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("question_categories.id"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_questions_category_id", "questions", ["category_id"])

    op.create_table(
        "answers",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("text_ro", sa.String(), nullable=False),
        sa.Column("text_en", sa.String(), nullable=True),
        sa.Column("weight", sa.Integer(), nullable=False),  # 1..10
        sa.Column("question_id", sa.Integer(), sa.ForeignKey("questions.id"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_answers_question_id", "answers", ["question_id"])

    # evaluations
    op.create_table(
        "evaluation_sessions",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("property_type_id", sa.Integer(), sa.ForeignKey("property_types.id"), nullable=False),
        sa.Column("property_name", sa.String(), nullable=False),
        sa.Column("property_location", sa.String(), nullable=True),
        sa.Column("property_surface", sa.Integer(), nullable=True),
        sa.Column("property_floors", sa.String(), nullable=True),
        sa.Column("property_construction_year", sa.Integer(), nullable=True),
        sa.Column("total_score", sa.Float(), nullable=False),
        sa.Column("max_possible_score", sa.Float(), nullable=False),
        sa.Column("percentage", sa.Float(), nullable=False),
        sa.Column("level", sa.String(), nullable=False),
        sa.Column("badge", sa.String(), nullable=False),
        sa.Column("completion_rate", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_evaluation_sessions_user_id", "evaluation_sessions", ["user_id"])
    op.create_index("ix_evaluation_sessions_property_type_id", "evaluation_sessions", ["property_type_id"])
    op.create_index("ix_evaluation_sessions_created_at", "evaluation_sessions", ["created_at"])

    op.create_table(
        "user_evaluation_answers",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("evaluation_session_id", sa.Integer(), sa.ForeignKey("evaluation_sessions.id"), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=False),
        sa.Column("answer_id", sa.Integer(), nullable=False),
        sa.Column("answer_weight", sa.Integer(), nullable=False),
        sa.Column("question_weight", sa.Integer(), nullable=False),
        sa.Column("points_earned", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "ix_user_evaluation_answers_evaluation_session_id", "user_evaluation_answers", ["evaluation_session_id"]
    )

    # custom fields
    op.create_table(
        "custom_fields",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("property_type_id", sa.Integer(), sa.ForeignKey("property_types.id"), nullable=False),
        sa.Column("label_ro", sa.String(), nullable=False),
        sa.Column("label_en", sa.String(), nullable=True),
        sa.Column("field_type", sa.String(), nullable=False),
        sa.Column("is_required", sa.Boolean(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_custom_fields_property_type_id", "custom_fields", ["property_type_id"])

    op.create_table(
        "custom_field_values",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("evaluation_session_id", sa.Integer(), sa.ForeignKey("evaluation_sessions.id"), nullable=False),
        sa.Column("custom_field_id", sa.Integer(), sa.ForeignKey("custom_fields.id"), nullable=False),
        sa.Column("value", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_custom_field_values_evaluation_session_id", "custom_field_values", ["evaluation_session_id"])


def downgrade() -> None:
    op.drop_index("ix_custom_field_values_evaluation_session_id", table_name="custom_field_values")
    op.drop_table("custom_field_values")
    op.drop_index("ix_custom_fields_property_type_id", table_name="custom_fields")
    op.drop_table("custom_fields")
    op.drop_index("ix_user_evaluation_answers_evaluation_session_id", table_name="user_evaluation_answers")
    op.drop_table("user_evaluation_answers")
    op.drop_index("ix_evaluation_sessions_created_at", table_name="evaluation_sessions")
    op.drop_index("ix_evaluation_sessions_property_type_id", table_name="evaluation_sessions")
    op.drop_index("ix_evaluation_sessions_user_id", table_name="evaluation_sessions")
    op.drop_table("evaluation_sessions")
    op.drop_index("ix_answers_question_id", table_name="answers")
    op.drop_table("answers")
    op.drop_index("ix_questions_category_id", table_name="questions")
    op.drop_table("questions")
    op.drop_index("ix_question_categories_property_type_id", table_name="question_categories")
    op.drop_table("question_categories")
    op.drop_table("property_types")
