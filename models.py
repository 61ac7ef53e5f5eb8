import random
from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from config import DEFAULT_CURRENCY
from core.db import Base

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONDocument = JSON().with_variant(JSONB(), "postgresql")

# Money columns: two decimal places, no float rounding
Money = Numeric(18, 2)


def generate_account_id():
    """Generate a 10-digit random unique number."""
    return int("".join(str(random.randint(1 if i == 0 else 0, 9)) for i in range(10)))


class InvestmentStatus(str, PyEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalStatus(str, PyEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ProjectStatus(str, PyEnum):
    DRAFT = "draft"
    PENDING = "pending"
    PUBLISHED = "published"
    CLOSED = "closed"
    COMPLETED = "completed"
    DELETED = "deleted"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# =================================
#  Users Table
# =================================
class User(Base):
    __tablename__ = "users"

    account_id = Column(BigInteger, primary_key=True, index=True, nullable=False, default=generate_account_id)
    descope_user_id = Column(String, unique=True, index=True, nullable=False)  # external subject id
    email = Column(String, index=True, nullable=True)
    username = Column(String, unique=True, index=True, nullable=True)
    full_name = Column(String, nullable=True)
    role = Column(String, nullable=True)  # borrower | investor
    current_account_type = Column(String, nullable=True)
    has_borrower_account = Column(Boolean, default=False, nullable=False)
    has_investor_account = Column(Boolean, default=False, nullable=False)
    has_completed_registration = Column(Boolean, default=False, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    status = Column(String, default="active", nullable=False)  # active | suspended
    suspension_reason = Column(Text, nullable=True)
    suspended_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    wallet = relationship("Wallet", back_populates="user", uselist=False)
    borrower_profile = relationship("BorrowerProfile", back_populates="user", uselist=False)
    investor_profile = relationship("InvestorProfile", back_populates="user", uselist=False)
    settings = relationship("UserSettings", back_populates="user", uselist=False)


# =================================
#  Wallets
# =================================
class Wallet(Base):
    __tablename__ = "wallets"

    user_id = Column(BigInteger, ForeignKey("users.account_id"), primary_key=True)
    balance = Column(Money, default=Decimal("0"), nullable=False)
    currency = Column(String(3), default=DEFAULT_CURRENCY, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="wallet")


class WalletTransaction(Base):
    """Append-only ledger of every balance change."""

    __tablename__ = "wallet_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey("users.account_id"), nullable=False, index=True)
    amount = Column(Money, nullable=False)  # signed: credits positive, debits negative
    balance_after = Column(Money, nullable=False)
    currency = Column(String(3), default=DEFAULT_CURRENCY, nullable=False)
    kind = Column(String, nullable=False)  # topup | investment | withdrawal
    reference_type = Column(String, nullable=True)
    reference_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)


# =================================
#  Profiles
# =================================
class BorrowerProfile(Base):
    __tablename__ = "borrower_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey("users.account_id"), unique=True, nullable=False)
    full_name = Column(String, nullable=True)
    occupation = Column(String, nullable=True)
    business_type = Column(String, nullable=True)
    location = Column(String, nullable=True)
    phone_number = Column(String, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    experience = Column(Text, nullable=True)
    is_complete = Column(Boolean, default=False, nullable=False)
    has_active_project = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="borrower_profile")


class InvestorProfile(Base):
    __tablename__ = "investor_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey("users.account_id"), unique=True, nullable=False)
    full_name = Column(String, nullable=True)
    location = Column(String, nullable=True)
    phone_number = Column(String, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    investment_experience = Column(String, nullable=True)
    investment_preference = Column(String, nullable=True)
    risk_tolerance = Column(String, nullable=True)
    annual_income = Column(Money, nullable=True)
    verification_status = Column(String, nullable=True)  # pending | verified | rejected
    portfolio_value = Column(Money, default=Decimal("0"), nullable=False)
    is_complete = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="investor_profile")


class UserSettings(Base):
    __tablename__ = "user_settings"

    user_id = Column(BigInteger, ForeignKey("users.account_id"), primary_key=True)
    email_notifications = Column(Boolean, default=True, nullable=False)
    sms_notifications = Column(Boolean, default=False, nullable=False)
    marketing_emails = Column(Boolean, default=False, nullable=False)
    language = Column(String, default="en", nullable=False)
    timezone = Column(String, default="Asia/Manila", nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="settings")


class BorrowRequest(Base):
    __tablename__ = "borrow_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey("users.account_id"), nullable=False, index=True)
    national_id = Column(String, nullable=True)
    passport_no = Column(String, nullable=True)
    tin = Column(String, nullable=True)
    street = Column(String, nullable=True)
    barangay = Column(String, nullable=True)
    municipality = Column(String, nullable=True)
    province = Column(String, nullable=True)
    country = Column(String, nullable=True)
    postal_code = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


# =================================
#  Projects
# =================================
class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(BigInteger, ForeignKey("users.account_id"), nullable=False, index=True)
    details = Column(JSONDocument, nullable=False, default=dict)  # borrower-authored loan terms
    status = Column(
        SQLEnum(ProjectStatus, native_enum=False, length=20, values_callable=_enum_values),
        default=ProjectStatus.PENDING,
        nullable=False,
        index=True,
    )
    approval_status = Column(
        SQLEnum(ApprovalStatus, native_enum=False, length=20, values_callable=_enum_values),
        default=ApprovalStatus.PENDING,
        nullable=False,
        index=True,
    )
    admin_feedback = Column(Text, nullable=True)
    reviewed_by = Column(BigInteger, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    total_funded = Column(Money, default=Decimal("0"), nullable=False)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    owner = relationship("User")
    fundings = relationship("ProjectFunding", back_populates="project", order_by="ProjectFunding.id")
    investment_requests = relationship(
        "InvestmentRequest", back_populates="project", order_by="InvestmentRequest.id"
    )
    interest_requests = relationship(
        "InterestRequest", back_populates="project", order_by="InterestRequest.id"
    )

    # Optimistic concurrency: a stale write raises StaleDataError
    __mapper_args__ = {"version_id_col": version}


class InvestmentRequest(Base):
    __tablename__ = "investment_requests"
    __table_args__ = (
        UniqueConstraint("project_id", "investor_id", name="uq_investment_request_project_investor"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    investor_id = Column(BigInteger, ForeignKey("users.account_id"), nullable=False, index=True)
    amount = Column(Money, nullable=False)
    status = Column(
        SQLEnum(InvestmentStatus, native_enum=False, length=20, values_callable=_enum_values),
        default=InvestmentStatus.PENDING,
        nullable=False,
        index=True,
    )
    # Snapshot of the investor's eligibility at submission time
    annual_income = Column(Money, nullable=False)
    verification_status = Column(String, nullable=True)
    max_percentage = Column(Integer, nullable=False)
    max_amount = Column(Money, nullable=False)
    used_default_income = Column(Boolean, default=False, nullable=False)

    admin_comment = Column(Text, nullable=True)
    reviewed_by = Column(BigInteger, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    project = relationship("Project", back_populates="investment_requests")
    investor = relationship("User")


class ProjectFunding(Base):
    """Approved money per (project, investor); repeat approvals are summed."""

    __tablename__ = "project_fundings"
    __table_args__ = (
        UniqueConstraint("project_id", "investor_id", name="uq_project_funding_project_investor"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    investor_id = Column(BigInteger, ForeignKey("users.account_id"), nullable=False, index=True)
    amount = Column(Money, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    project = relationship("Project", back_populates="fundings")
    investor = relationship("User")


class InterestRequest(Base):
    __tablename__ = "interest_requests"
    __table_args__ = (
        UniqueConstraint("project_id", "investor_id", name="uq_interest_request_project_investor"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    investor_id = Column(BigInteger, ForeignKey("users.account_id"), nullable=False, index=True)
    message = Column(Text, nullable=True)
    status = Column(String, default="pending", nullable=False)  # pending | approved | rejected
    decided_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    project = relationship("Project", back_populates="interest_requests")
    investor = relationship("User")


# =================================
#  Top-ups
# =================================
class TopupRequest(Base):
    __tablename__ = "topup_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey("users.account_id"), nullable=False, index=True)
    amount = Column(Money, nullable=False)
    currency = Column(String(3), default=DEFAULT_CURRENCY, nullable=False)
    transfer_date = Column(Date, nullable=True)
    account_name = Column(String, nullable=True)
    account_number = Column(String, nullable=True)
    bank_name = Column(String, nullable=True)
    reference = Column(String, nullable=True)
    proof_of_transfer = Column(Text, nullable=True)
    status = Column(String, default="pending", nullable=False, index=True)  # pending | approved | rejected
    admin_notes = Column(Text, nullable=True)
    reviewed_by = Column(BigInteger, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User")


# =================================
#  Team (back-office staff)
# =================================
class TeamMember(Base):
    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(BigInteger, ForeignKey("users.account_id"), nullable=False, index=True)
    member_id = Column(BigInteger, ForeignKey("users.account_id"), nullable=True, index=True)
    email = Column(String, nullable=False, index=True)
    role = Column(String, default="member", nullable=False)  # admin | editor | viewer | member
    status = Column(String, default="pending", nullable=False)  # pending | active | removed
    invited_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    joined_at = Column(DateTime, nullable=True)

    permissions = relationship(
        "TeamMemberPermission",
        back_populates="team_member",
        cascade="all, delete-orphan",
        order_by="TeamMemberPermission.permission_key",
    )


class TeamMemberPermission(Base):
    __tablename__ = "team_member_permissions"
    __table_args__ = (
        UniqueConstraint("team_member_id", "permission_key", name="uq_team_member_permission"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_member_id = Column(Integer, ForeignKey("team_members.id", ondelete="CASCADE"), nullable=False, index=True)
    permission_key = Column(String, nullable=False)
    can_access = Column(Boolean, default=True, nullable=False)

    team_member = relationship("TeamMember", back_populates="permissions")


class TeamInvitation(Base):
    __tablename__ = "team_invitations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(BigInteger, ForeignKey("users.account_id"), nullable=False, index=True)
    team_member_id = Column(Integer, ForeignKey("team_members.id", ondelete="CASCADE"), nullable=False)
    email = Column(String, nullable=False)
    token = Column(String, unique=True, index=True, nullable=False)
    role = Column(String, nullable=False)
    status = Column(String, default="pending", nullable=False)  # pending | accepted | revoked
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    accepted_at = Column(DateTime, nullable=True)


# =================================
#  Support tickets
# =================================
class SupportTicket(Base):
    __tablename__ = "support_tickets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey("users.account_id"), nullable=False, index=True)
    category = Column(String, default="general", nullable=False)
    subject = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String, default="open", nullable=False, index=True)  # open | in_progress | resolved | closed
    admin_reply = Column(Text, nullable=True)
    replied_by = Column(BigInteger, nullable=True)
    replied_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User")


# =================================
#  Notifications
# =================================
class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey("users.account_id"), nullable=False)
    # investment_submitted | investment_approved | investment_rejected | investment_received |
    # topup_approved | topup_rejected | project_approved | project_rejected | general
    notification_type = Column(String(50), default="general", nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    link = Column(Text, nullable=True)
    related_request_type = Column(String(50), nullable=True)
    related_request_id = Column(String(64), nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (Index("ix_notifications_user_created", "user_id", "created_at"),)
