"""initial crowdlending schema

Revision ID: 0001_initial_schema
Revises: None
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.Numeric(18, 2)


def _timestamps(updated=True):
    columns = [sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now())]
    if updated:
        columns.append(sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()))
    return columns


def upgrade():
    op.create_table(
        "users",
        sa.Column("account_id", sa.BigInteger(), primary_key=True),
        sa.Column("descope_user_id", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("username", sa.String(), nullable=True),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("role", sa.String(), nullable=True),
        sa.Column("current_account_type", sa.String(), nullable=True),
        sa.Column("has_borrower_account", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("has_investor_account", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("has_completed_registration", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        sa.Column("suspension_reason", sa.Text(), nullable=True),
        sa.Column("suspended_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_descope_user_id", "users", ["descope_user_id"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "wallets",
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.account_id"), primary_key=True),
        sa.Column("balance", MONEY, nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="PHP"),
        *_timestamps(),
    )

    op.create_table(
        "wallet_transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.account_id"), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("balance_after", MONEY, nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="PHP"),
        sa.Column("kind", sa.String(), nullable=False),
        sa.Column("reference_type", sa.String(), nullable=True),
        sa.Column("reference_id", sa.String(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_wallet_transactions_user_id", "wallet_transactions", ["user_id"])
    op.create_index("ix_wallet_transactions_created_at", "wallet_transactions", ["created_at"])

    op.create_table(
        "borrower_profiles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.account_id"), nullable=False, unique=True),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("occupation", sa.String(), nullable=True),
        sa.Column("business_type", sa.String(), nullable=True),
        sa.Column("location", sa.String(), nullable=True),
        sa.Column("phone_number", sa.String(), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("experience", sa.Text(), nullable=True),
        sa.Column("is_complete", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("has_active_project", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )

    op.create_table(
        "investor_profiles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.account_id"), nullable=False, unique=True),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("location", sa.String(), nullable=True),
        sa.Column("phone_number", sa.String(), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("investment_experience", sa.String(), nullable=True),
        sa.Column("investment_preference", sa.String(), nullable=True),
        sa.Column("risk_tolerance", sa.String(), nullable=True),
        sa.Column("annual_income", MONEY, nullable=True),
        sa.Column("verification_status", sa.String(), nullable=True),
        sa.Column("portfolio_value", MONEY, nullable=False, server_default="0"),
        sa.Column("is_complete", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )

    op.create_table(
        "user_settings",
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.account_id"), primary_key=True),
        sa.Column("email_notifications", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sms_notifications", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("marketing_emails", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("language", sa.String(), nullable=False, server_default="en"),
        sa.Column("timezone", sa.String(), nullable=False, server_default="Asia/Manila"),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "borrow_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.account_id"), nullable=False),
        sa.Column("national_id", sa.String(), nullable=True),
        sa.Column("passport_no", sa.String(), nullable=True),
        sa.Column("tin", sa.String(), nullable=True),
        sa.Column("street", sa.String(), nullable=True),
        sa.Column("barangay", sa.String(), nullable=True),
        sa.Column("municipality", sa.String(), nullable=True),
        sa.Column("province", sa.String(), nullable=True),
        sa.Column("country", sa.String(), nullable=True),
        sa.Column("postal_code", sa.String(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_borrow_requests_user_id", "borrow_requests", ["user_id"])

    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.BigInteger(), sa.ForeignKey("users.account_id"), nullable=False),
        sa.Column("details", sa.JSON().with_variant(sa.dialects.postgresql.JSONB(), "postgresql"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("approval_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("admin_feedback", sa.Text(), nullable=True),
        sa.Column("reviewed_by", sa.BigInteger(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("total_funded", MONEY, nullable=False, server_default="0"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
    )
    op.create_index("ix_projects_owner_id", "projects", ["owner_id"])
    op.create_index("ix_projects_status", "projects", ["status"])
    op.create_index("ix_projects_approval_status", "projects", ["approval_status"])

    op.create_table(
        "investment_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("investor_id", sa.BigInteger(), sa.ForeignKey("users.account_id"), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("annual_income", MONEY, nullable=False),
        sa.Column("verification_status", sa.String(), nullable=True),
        sa.Column("max_percentage", sa.Integer(), nullable=False),
        sa.Column("max_amount", MONEY, nullable=False),
        sa.Column("used_default_income", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("admin_comment", sa.Text(), nullable=True),
        sa.Column("reviewed_by", sa.BigInteger(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        *_timestamps(updated=False),
        sa.UniqueConstraint("project_id", "investor_id", name="uq_investment_request_project_investor"),
    )
    op.create_index("ix_investment_requests_project_id", "investment_requests", ["project_id"])
    op.create_index("ix_investment_requests_investor_id", "investment_requests", ["investor_id"])
    op.create_index("ix_investment_requests_status", "investment_requests", ["status"])

    op.create_table(
        "project_fundings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("investor_id", sa.BigInteger(), sa.ForeignKey("users.account_id"), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("project_id", "investor_id", name="uq_project_funding_project_investor"),
    )
    op.create_index("ix_project_fundings_project_id", "project_fundings", ["project_id"])
    op.create_index("ix_project_fundings_investor_id", "project_fundings", ["investor_id"])

    op.create_table(
        "interest_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("investor_id", sa.BigInteger(), sa.ForeignKey("users.account_id"), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("decided_at", sa.DateTime(), nullable=True),
        *_timestamps(updated=False),
        sa.UniqueConstraint("project_id", "investor_id", name="uq_interest_request_project_investor"),
    )
    op.create_index("ix_interest_requests_project_id", "interest_requests", ["project_id"])
    op.create_index("ix_interest_requests_investor_id", "interest_requests", ["investor_id"])

    op.create_table(
        "topup_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.account_id"), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="PHP"),
        sa.Column("transfer_date", sa.Date(), nullable=True),
        sa.Column("account_name", sa.String(), nullable=True),
        sa.Column("account_number", sa.String(), nullable=True),
        sa.Column("bank_name", sa.String(), nullable=True),
        sa.Column("reference", sa.String(), nullable=True),
        sa.Column("proof_of_transfer", sa.Text(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("reviewed_by", sa.BigInteger(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_topup_requests_user_id", "topup_requests", ["user_id"])
    op.create_index("ix_topup_requests_status", "topup_requests", ["status"])

    op.create_table(
        "team_members",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.BigInteger(), sa.ForeignKey("users.account_id"), nullable=False),
        sa.Column("member_id", sa.BigInteger(), sa.ForeignKey("users.account_id"), nullable=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False, server_default="member"),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("invited_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("joined_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_team_members_owner_id", "team_members", ["owner_id"])
    op.create_index("ix_team_members_member_id", "team_members", ["member_id"])
    op.create_index("ix_team_members_email", "team_members", ["email"])

    op.create_table(
        "team_member_permissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "team_member_id",
            sa.Integer(),
            sa.ForeignKey("team_members.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("permission_key", sa.String(), nullable=False),
        sa.Column("can_access", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint("team_member_id", "permission_key", name="uq_team_member_permission"),
    )
    op.create_index("ix_team_member_permissions_team_member_id", "team_member_permissions", ["team_member_id"])

    op.create_table(
        "team_invitations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.BigInteger(), sa.ForeignKey("users.account_id"), nullable=False),
        sa.Column(
            "team_member_id",
            sa.Integer(),
            sa.ForeignKey("team_members.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("token", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("accepted_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_team_invitations_token", "team_invitations", ["token"], unique=True)
    op.create_index("ix_team_invitations_owner_id", "team_invitations", ["owner_id"])

    op.create_table(
        "support_tickets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.account_id"), nullable=False),
        sa.Column("category", sa.String(), nullable=False, server_default="general"),
        sa.Column("subject", sa.String(200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="open"),
        sa.Column("admin_reply", sa.Text(), nullable=True),
        sa.Column("replied_by", sa.BigInteger(), nullable=True),
        sa.Column("replied_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_support_tickets_user_id", "support_tickets", ["user_id"])
    op.create_index("ix_support_tickets_status", "support_tickets", ["status"])


def downgrade():
    for table in (
        "support_tickets",
        "team_invitations",
        "team_member_permissions",
        "team_members",
        "topup_requests",
        "interest_requests",
        "project_fundings",
        "investment_requests",
        "projects",
        "borrow_requests",
        "user_settings",
        "investor_profiles",
        "borrower_profiles",
        "wallet_transactions",
        "wallets",
        "users",
    ):
        op.drop_table(table)
