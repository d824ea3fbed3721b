"""Projects, tasks, members and timesheets tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

Members and tasks carry a lifecycle `state` ('active' / 'removed') instead of
being deleted. One timesheet row per (user, task, date).
"""

from alembic import op

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.execute("""
        CREATE TABLE IF NOT EXISTS projects (
          id UUID PRIMARY KEY,
          title VARCHAR(200) NOT NULL,
          start_date DATE NOT NULL,
          end_date DATE NOT NULL,
          billable_hours INTEGER NOT NULL DEFAULT 0,
          non_billable_hours INTEGER NOT NULL DEFAULT 0,
          created_by UUID NOT NULL,
          created_on TIMESTAMPTZ DEFAULT now(),
          updated_on TIMESTAMPTZ DEFAULT now(),
          CHECK (start_date <= end_date)
        );
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_projects_created_by ON projects(created_by);")

    op.execute("""
        CREATE TABLE IF NOT EXISTS members (
          id UUID PRIMARY KEY,
          project_id UUID NOT NULL REFERENCES projects(id),
          user_id UUID NOT NULL,
          is_billable BOOLEAN NOT NULL DEFAULT TRUE,
          state VARCHAR(20) NOT NULL DEFAULT 'active',
          CONSTRAINT uq_members_project_user UNIQUE (project_id, user_id)
        );
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_members_project_id ON members(project_id);")
    op.execute("CREATE INDEX IF NOT EXISTS ix_members_user_id ON members(user_id);")

    op.execute("""
        CREATE TABLE IF NOT EXISTS tasks (
          id UUID PRIMARY KEY,
          project_id UUID NOT NULL REFERENCES projects(id),
          title VARCHAR(200) NOT NULL,
          start_date DATE NOT NULL,
          end_date DATE NOT NULL,
          is_added_by_member BOOLEAN NOT NULL DEFAULT FALSE,
          member_id UUID REFERENCES members(id),
          state VARCHAR(20) NOT NULL DEFAULT 'active'
        );
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_tasks_project_id ON tasks(project_id);")

    op.execute("""
        CREATE TABLE IF NOT EXISTS timesheets (
          id UUID PRIMARY KEY,
          user_id UUID NOT NULL,
          task_id UUID NOT NULL REFERENCES tasks(id),
          task_title VARCHAR(200) NOT NULL,
          timesheet_date DATE NOT NULL,
          hours INTEGER NOT NULL DEFAULT 0,
          status VARCHAR(20) NOT NULL DEFAULT 'none',
          manager_comments TEXT DEFAULT '',
          submitted_on TIMESTAMPTZ,
          created_on TIMESTAMPTZ DEFAULT now(),
          last_modified_on TIMESTAMPTZ DEFAULT now(),
          CONSTRAINT uq_timesheets_user_task_date UNIQUE (user_id, task_id, timesheet_date),
          CONSTRAINT ck_timesheets_hours_non_negative CHECK (hours >= 0)
        );
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_timesheets_user_date ON timesheets(user_id, timesheet_date);")
    op.execute("CREATE INDEX IF NOT EXISTS ix_timesheets_task_id ON timesheets(task_id);")


def downgrade():
    for table in ["timesheets", "tasks", "members", "projects"]:
        op.execute(f"DROP TABLE IF EXISTS {table};")
