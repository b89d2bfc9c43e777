"""Identity store: persons, roles and the directory mirror.

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

_ROLE_RESOURCES = ("STANDARD", "ORGANIZATIONAL", "PROJECT", "FILE_SHARE", "EMAIL_RESOURCE")


def _association(name: str, left: str, right: str) -> None:
    op.create_table(
        name,
        sa.Column(f"{left}_id", sa.Uuid(), nullable=False),
        sa.Column(f"{right}_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(
            [f"{left}_id"],
            [f"{left}.id"],
            name=op.f(f"fk_{name}_{left}_id_{left}"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            [f"{right}_id"],
            [f"{right}.id"],
            name=op.f(f"fk_{name}_{right}_id_{right}"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint(f"{left}_id", f"{right}_id", name=op.f(f"pk_{name}")),
    )


def upgrade() -> None:
    op.create_table(
        "person",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("last_name", sa.String(), nullable=True),
        sa.Column("first_name", sa.String(), nullable=True),
        sa.Column("central_account_name", sa.String(), nullable=True),
        sa.Column("department", sa.String(), nullable=True),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("employee", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_person")),
    )
    op.create_index(
        op.f("ix_person_central_account_name"), "person", ["central_account_name"]
    )
    op.create_index(op.f("ix_person_department"), "person", ["department"])

    op.create_table(
        "role",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("admin_role", sa.Boolean(), nullable=False),
        sa.Column(
            "role_resource",
            sa.Enum(*_ROLE_RESOURCES, name="roleresource", native_enum=False),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_role")),
    )
    op.create_index(op.f("ix_role_name"), "role", ["name"])

    op.create_table(
        "ad_user",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("distinguished_name", sa.String(), nullable=False),
        sa.Column("stale", sa.Boolean(), nullable=False),
        sa.Column("logon_name", sa.String(), nullable=False),
        sa.Column("account_control", sa.BigInteger(), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False),
        sa.Column("locked", sa.Boolean(), nullable=False),
        sa.Column("password_expires", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_ad_user")),
        sa.UniqueConstraint(
            "distinguished_name", name=op.f("uq_ad_user_distinguished_name")
        ),
    )
    op.create_index(op.f("ix_ad_user_logon_name"), "ad_user", ["logon_name"])

    op.create_table(
        "ad_group",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("distinguished_name", sa.String(), nullable=False),
        sa.Column("stale", sa.Boolean(), nullable=False),
        sa.Column("common_name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("member_dns", sa.Text(), nullable=False),
        sa.Column("admin_group", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_ad_group")),
        sa.UniqueConstraint(
            "distinguished_name", name=op.f("uq_ad_group_distinguished_name")
        ),
    )
    op.create_index(op.f("ix_ad_group_common_name"), "ad_group", ["common_name"])

    _association("role_person", "role", "person")
    _association("role_ad_user", "role", "ad_user")
    _association("role_ad_group", "role", "ad_group")
    _association("person_ad_user", "person", "ad_user")


def downgrade() -> None:
    for name in ("person_ad_user", "role_ad_group", "role_ad_user", "role_person"):
        op.drop_table(name)
    op.drop_index(op.f("ix_ad_group_common_name"), table_name="ad_group")
    op.drop_table("ad_group")
    op.drop_index(op.f("ix_ad_user_logon_name"), table_name="ad_user")
    op.drop_table("ad_user")
    op.drop_index(op.f("ix_role_name"), table_name="role")
    op.drop_table("role")
    op.drop_index(op.f("ix_person_department"), table_name="person")
    op.drop_index(op.f("ix_person_central_account_name"), table_name="person")
    op.drop_table("person")
