"""Initial Pokrok assistant schema."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "202510190900"
down_revision = None
branch_labels = None
depends_on = None


def _id_column() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _user_column() -> sa.Column:
    return sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))


def _updated_at() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))


def upgrade() -> None:
    op.create_table(
        "users",
        _id_column(),
        sa.Column("locale", sa.String(length=10), nullable=True),
        _created_at(),
    )

    op.create_table(
        "areas",
        _id_column(),
        _user_column(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("color", sa.String(length=20), nullable=False, server_default=sa.text("'#3B82F6'")),
        sa.Column("icon", sa.String(length=50), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_areas_user_id", "areas", ["user_id"], unique=False)

    op.create_table(
        "goals",
        _id_column(),
        _user_column(),
        sa.Column("area_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("target_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=False, server_default=sa.text("'active'")),
        sa.Column("priority", sa.String(length=50), nullable=False, server_default=sa.text("'meaningful'")),
        sa.Column("category", sa.String(length=50), nullable=False, server_default=sa.text("'medium-term'")),
        sa.Column("goal_type", sa.String(length=50), nullable=False, server_default=sa.text("'outcome'")),
        sa.Column("icon", sa.String(length=50), nullable=True),
        sa.Column("progress_percentage", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["area_id"], ["areas.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_goals_user_id", "goals", ["user_id"], unique=False)
    op.create_index("ix_goals_area_id", "goals", ["area_id"], unique=False)

    op.create_table(
        "goal_metrics",
        _id_column(),
        _user_column(),
        sa.Column("goal_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.String(length=50), nullable=False, server_default=sa.text("'number'")),
        sa.Column("unit", sa.String(length=50), nullable=True),
        sa.Column("target_value", sa.Float(), nullable=True),
        sa.Column("current_value", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("initial_value", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("incremental_value", sa.Float(), nullable=False, server_default=sa.text("1")),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["goal_id"], ["goals.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_goal_metrics_user_id", "goal_metrics", ["user_id"], unique=False)
    op.create_index("ix_goal_metrics_goal_id", "goal_metrics", ["goal_id"], unique=False)

    op.create_table(
        "daily_steps",
        _id_column(),
        _user_column(),
        sa.Column("goal_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("area_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_important", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_urgent", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["goal_id"], ["goals.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["area_id"], ["areas.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_daily_steps_user_id", "daily_steps", ["user_id"], unique=False)
    op.create_index("ix_daily_steps_goal_id", "daily_steps", ["goal_id"], unique=False)
    op.create_index("ix_daily_steps_date", "daily_steps", ["date"], unique=False)

    op.create_table(
        "habits",
        _id_column(),
        _user_column(),
        sa.Column("area_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("frequency", sa.String(length=20), nullable=False, server_default=sa.text("'daily'")),
        sa.Column("selected_days", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("selected_dates", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("always_show", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("icon", sa.String(length=50), nullable=True),
        sa.Column("streak", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("max_streak", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("start_date", sa.Date(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["area_id"], ["areas.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_habits_user_id", "habits", ["user_id"], unique=False)

    op.create_table(
        "habit_completions",
        _id_column(),
        _user_column(),
        sa.Column("habit_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("completion_date", sa.Date(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["habit_id"], ["habits.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("habit_id", "completion_date", name="uq_habit_completions_habit_day"),
    )
    op.create_index("ix_habit_completions_user_id", "habit_completions", ["user_id"], unique=False)

    op.create_table(
        "agent_actions_log",
        _id_column(),
        _user_column(),
        sa.Column("action_type", sa.Text(), nullable=False),
        sa.Column(
            "action_payload",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("reason", sa.Text(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_agent_actions_log_user_id", "agent_actions_log", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_agent_actions_log_user_id", table_name="agent_actions_log")
    op.drop_table("agent_actions_log")
    op.drop_index("ix_habit_completions_user_id", table_name="habit_completions")
    op.drop_table("habit_completions")
    op.drop_index("ix_habits_user_id", table_name="habits")
    op.drop_table("habits")
    op.drop_index("ix_daily_steps_date", table_name="daily_steps")
    op.drop_index("ix_daily_steps_goal_id", table_name="daily_steps")
    op.drop_index("ix_daily_steps_user_id", table_name="daily_steps")
    op.drop_table("daily_steps")
    op.drop_index("ix_goal_metrics_goal_id", table_name="goal_metrics")
    op.drop_index("ix_goal_metrics_user_id", table_name="goal_metrics")
    op.drop_table("goal_metrics")
    op.drop_index("ix_goals_area_id", table_name="goals")
    op.drop_index("ix_goals_user_id", table_name="goals")
    op.drop_table("goals")
    op.drop_index("ix_areas_user_id", table_name="areas")
    op.drop_table("areas")
    op.drop_table("users")
