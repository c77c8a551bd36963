"""Initial schema

Revision ID: 5d1e7c2a9f30
Revises:
Create Date: 2026-10-19

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision = "5d1e7c2a9f30"
down_revision = None
branch_labels = None
depends_on = None

ROLE = sa.Enum("HEAD", "MANAGER", "EMPLOYEE", name="role")
PROJECT_STATUS = sa.Enum("PLANNING", "ACTIVE", "COMPLETED", "ON_HOLD", name="projectstatus")
TASK_STATUS = sa.Enum("ONGOING", "FINISHED", "BACKLOG", name="taskstatus")
TASK_PRIORITY = sa.Enum("LOW", "MEDIUM", "HIGH", "URGENT", name="taskpriority")
TASK_TYPE = sa.Enum("INDIVIDUAL", "TEAM", name="tasktype")
ISSUE_STATUS = sa.Enum("OPEN", "IN_PROGRESS", "RESOLVED", "CLOSED", name="issuestatus")


def _str() -> sqlmodel.sql.sqltypes.AutoString:
    return sqlmodel.sql.sqltypes.AutoString()


def upgrade() -> None:
    # 1) People
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", _str(), nullable=False),
        sa.Column("email", _str(), nullable=False),
        sa.Column("role", ROLE, nullable=False),
        sa.Column("manager_id", sa.Uuid(), nullable=True),
        sa.Column("password_hash", _str(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["manager_id"], ["users.id"]),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_manager_id", "users", ["manager_id"], unique=False)

    # 2) Projects and teams
    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", _str(), nullable=False),
        sa.Column("description", _str(), nullable=True),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("end_date", sa.DateTime(), nullable=True),
        sa.Column("status", PROJECT_STATUS, nullable=False),
        sa.Column("creator_id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["creator_id"], ["users.id"]),
    )
    op.create_index("ix_projects_name", "projects", ["name"], unique=False)

    op.create_table(
        "teams",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", _str(), nullable=False),
        sa.Column("description", _str(), nullable=True),
        sa.Column("leader_id", sa.Uuid(), nullable=True),
        sa.Column("creator_id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["leader_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["creator_id"], ["users.id"]),
    )
    op.create_index("ix_teams_name", "teams", ["name"], unique=False)
    op.create_index("ix_teams_leader_id", "teams", ["leader_id"], unique=False)

    op.create_table(
        "team_projects",
        sa.Column("team_id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"]),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.PrimaryKeyConstraint("team_id", "project_id"),
    )
    op.create_index("ix_team_projects_project_id", "team_projects", ["project_id"], unique=False)

    op.create_table(
        "team_members",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("team_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("joined_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.UniqueConstraint("user_id", "team_id", name="uq_team_members_user_id_team_id"),
    )
    op.create_index("ix_team_members_team_id", "team_members", ["team_id"], unique=False)
    op.create_index("ix_team_members_user_id", "team_members", ["user_id"], unique=False)

    # 3) Work items
    op.create_table(
        "tasks",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("title", _str(), nullable=False),
        sa.Column("description", _str(), nullable=True),
        sa.Column("status", TASK_STATUS, nullable=False),
        sa.Column("priority", TASK_PRIORITY, nullable=False),
        sa.Column("task_type", TASK_TYPE, nullable=False),
        sa.Column("creator_id", sa.Uuid(), nullable=False),
        sa.Column("assignee_id", sa.Uuid(), nullable=True),
        sa.Column("due_date", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["creator_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["assignee_id"], ["users.id"]),
    )
    op.create_index("ix_tasks_status", "tasks", ["status"], unique=False)
    op.create_index("ix_tasks_creator_id", "tasks", ["creator_id"], unique=False)
    op.create_index("ix_tasks_assignee_id", "tasks", ["assignee_id"], unique=False)

    op.create_table(
        "team_tasks",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("task_id", sa.Uuid(), nullable=False),
        sa.Column("team_id", sa.Uuid(), nullable=False),
        sa.Column("assigned_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.id"]),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"]),
        sa.UniqueConstraint("task_id", "team_id", name="uq_team_tasks_task_id_team_id"),
    )
    op.create_index("ix_team_tasks_task_id", "team_tasks", ["task_id"], unique=False)
    op.create_index("ix_team_tasks_team_id", "team_tasks", ["team_id"], unique=False)

    op.create_table(
        "issues",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("title", _str(), nullable=False),
        sa.Column("description", _str(), nullable=False),
        sa.Column("status", ISSUE_STATUS, nullable=False),
        sa.Column("creator_id", sa.Uuid(), nullable=False),
        sa.Column("task_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["creator_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.id"]),
    )
    op.create_index("ix_issues_status", "issues", ["status"], unique=False)
    op.create_index("ix_issues_creator_id", "issues", ["creator_id"], unique=False)
    op.create_index("ix_issues_task_id", "issues", ["task_id"], unique=False)

    op.create_table(
        "team_updates",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("content", _str(), nullable=False),
        sa.Column("member_id", sa.Uuid(), nullable=False),
        sa.Column("team_id", sa.Uuid(), nullable=False),
        sa.Column("task_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["member_id"], ["team_members.id"]),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"]),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.id"]),
    )
    op.create_index("ix_team_updates_member_id", "team_updates", ["member_id"], unique=False)
    op.create_index("ix_team_updates_team_id", "team_updates", ["team_id"], unique=False)
    op.create_index("ix_team_updates_task_id", "team_updates", ["task_id"], unique=False)

    # 4) Audit trail and update requests
    op.create_table(
        "activity_events",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("actor_id", sa.Uuid(), nullable=False),
        sa.Column("entity_type", _str(), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("verb", _str(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["actor_id"], ["users.id"]),
    )
    op.create_index("ix_activity_events_actor_id", "activity_events", ["actor_id"], unique=False)
    op.create_index("ix_activity_events_entity_type", "activity_events", ["entity_type"], unique=False)
    op.create_index("ix_activity_events_entity_id", "activity_events", ["entity_id"], unique=False)

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("team_id", sa.Uuid(), nullable=True),
        sa.Column("message", _str(), nullable=False),
        sa.Column("type", _str(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"]),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"], unique=False)
    op.create_index("ix_notifications_team_id", "notifications", ["team_id"], unique=False)
    op.create_index("ix_notifications_type", "notifications", ["type"], unique=False)


def downgrade() -> None:
    for table in (
        "notifications",
        "activity_events",
        "team_updates",
        "issues",
        "team_tasks",
        "tasks",
        "team_members",
        "team_projects",
        "teams",
        "projects",
        "users",
    ):
        op.drop_table(table)
    bind = op.get_bind()
    for enum in (ISSUE_STATUS, TASK_TYPE, TASK_PRIORITY, TASK_STATUS, PROJECT_STATUS, ROLE):
        enum.drop(bind, checkfirst=True)
