"""Initial shift ledger schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

leave_type = postgresql.ENUM(
    "VACATION",
    "SICK",
    "MEDICAL_CERTIFICATE",
    "UNPAID",
    "EXCUSED",
    "PUBLIC_HOLIDAY",
    name="leave_type",
    create_type=False,
)

leave_status = postgresql.ENUM(
    "APPROVED",
    "PENDING",
    "REJECTED",
    name="leave_status",
    create_type=False,
)

audit_actor_type = postgresql.ENUM(
    "ADMIN",
    "SYSTEM",
    name="audit_actor_type",
    create_type=False,
)


def _timestamps(*, with_updated_at: bool) -> list[sa.Column]:
    columns = [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        )
    ]
    if with_updated_at:
        columns.append(
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                nullable=False,
                server_default=sa.text("CURRENT_TIMESTAMP"),
            )
        )
    return columns


def upgrade() -> None:
    bind = op.get_bind()
    leave_type.create(bind, checkfirst=True)
    leave_status.create(bind, checkfirst=True)
    audit_actor_type.create(bind, checkfirst=True)

    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("role_title", sa.String(length=255), nullable=True),
        sa.Column("records_punches", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(with_updated_at=False),
    )

    op.create_table(
        "shift_assignments",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("pattern_id", sa.String(length=64), nullable=False),
        sa.Column("entry_time", sa.Time(timezone=False), nullable=False),
        sa.Column("break_start", sa.Time(timezone=False), nullable=True),
        sa.Column("break_end", sa.Time(timezone=False), nullable=True),
        sa.Column("exit_time", sa.Time(timezone=False), nullable=False),
        sa.Column("effective_from", sa.Date(), nullable=False),
        sa.Column("note", sa.String(length=1000), nullable=True),
        sa.Column("created_by", sa.String(length=255), nullable=False),
        *_timestamps(with_updated_at=False),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("employee_id", "effective_from", name="uq_shift_assignments_employee_effective_from"),
    )
    op.create_index("ix_shift_assignments_employee_id", "shift_assignments", ["employee_id"], unique=False)

    op.create_table(
        "punches",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("day_date", sa.Date(), nullable=False),
        sa.Column("entry", sa.Time(timezone=False), nullable=True),
        sa.Column("break_start", sa.Time(timezone=False), nullable=True),
        sa.Column("break_end", sa.Time(timezone=False), nullable=True),
        sa.Column("exit", sa.Time(timezone=False), nullable=True),
        sa.Column("exit_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.String(length=1000), nullable=True),
        sa.Column("justification", sa.String(length=1000), nullable=True),
        sa.Column("updated_by", sa.String(length=255), nullable=False),
        *_timestamps(with_updated_at=True),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("employee_id", "day_date", name="uq_punches_employee_day"),
    )
    op.create_index("ix_punches_employee_id", "punches", ["employee_id"], unique=False)
    op.create_index("ix_punches_day_date", "punches", ["day_date"], unique=False)

    op.create_table(
        "leaves",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("type", leave_type, nullable=False),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "status",
            leave_status,
            nullable=False,
            server_default=sa.text("'APPROVED'"),
        ),
        sa.Column("note", sa.String(length=1000), nullable=True),
        *_timestamps(with_updated_at=False),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_leaves_employee_id", "leaves", ["employee_id"], unique=False)

    op.create_table(
        "company_parameters",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("night_start", sa.Time(timezone=False), nullable=False, server_default=sa.text("'22:00'")),
        sa.Column("night_end", sa.Time(timezone=False), nullable=False, server_default=sa.text("'05:00'")),
        sa.Column("min_break_minutes", sa.Integer(), nullable=False, server_default=sa.text("60")),
        sa.Column("diurnal_overtime_rate", sa.Float(), nullable=False, server_default=sa.text("1.5")),
        sa.Column("nocturnal_overtime_rate", sa.Float(), nullable=False, server_default=sa.text("1.7")),
        sa.Column("night_differential_rate", sa.Float(), nullable=False, server_default=sa.text("0.2")),
        *_timestamps(with_updated_at=True),
        sa.UniqueConstraint("name", name="uq_company_parameters_name"),
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "ts_utc",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column("actor_type", audit_actor_type, nullable=False),
        sa.Column("actor_id", sa.String(length=255), nullable=False),
        sa.Column("action", sa.String(length=255), nullable=False),
        sa.Column("entity_type", sa.String(length=255), nullable=True),
        sa.Column("entity_id", sa.String(length=255), nullable=True),
        sa.Column("ip", sa.String(length=255), nullable=True),
        sa.Column("user_agent", sa.String(length=1000), nullable=True),
        sa.Column("success", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "details",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
    )
    op.create_index("ix_audit_logs_ts_utc", "audit_logs", ["ts_utc"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_audit_logs_ts_utc", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_table("company_parameters")
    op.drop_index("ix_leaves_employee_id", table_name="leaves")
    op.drop_table("leaves")
    op.drop_index("ix_punches_day_date", table_name="punches")
    op.drop_index("ix_punches_employee_id", table_name="punches")
    op.drop_table("punches")
    op.drop_index("ix_shift_assignments_employee_id", table_name="shift_assignments")
    op.drop_table("shift_assignments")
    op.drop_table("employees")

    bind = op.get_bind()
    audit_actor_type.drop(bind, checkfirst=True)
    leave_status.drop(bind, checkfirst=True)
    leave_type.drop(bind, checkfirst=True)
