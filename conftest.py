import os

# Must be set before core.db builds its engine
os.environ["TESTING"] = "true"
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://127.0.0.1:1/0")

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402

from core.db import SessionLocal, create_tables, drop_tables  # noqa: E402
from core.rate_limit import default_rate_limiter  # noqa: E402
from models import (  # noqa: E402
    InvestorProfile,
    Project,
    ProjectStatus,
    TeamMember,
    TeamMemberPermission,
    User,
    Wallet,
)


@pytest.fixture(scope="function")
def test_db():
    """Create all tables before each test and drop them after"""
    create_tables()
    db = SessionLocal()
    try:
        test_users = [
            User(
                descope_user_id="test_user_1",
                email="test1@example.com",
                username="testuser1",
                full_name="Test User One",
            ),
            User(
                descope_user_id="test_user_2",
                email="test2@example.com",
                username="testuser2",
                full_name="Test User Two",
            ),
        ]
        db.add_all(test_users)
        db.commit()

        yield db
    finally:
        db.close()
        drop_tables()


@pytest.fixture(autouse=True)
def reset_rate_limits():
    default_rate_limiter.reset()
    yield
    default_rate_limiter.reset()


@pytest.fixture
def make_user(test_db):
    counter = {"n": 0}

    def _make_user(*, email=None, is_admin=False, status="active", **fields):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            descope_user_id=f"subject_{n}",
            email=email or f"user{n}@example.com",
            username=f"user_{n}",
            full_name=fields.pop("full_name", f"User {n}"),
            is_admin=is_admin,
            status=status,
            **fields,
        )
        test_db.add(user)
        test_db.commit()
        test_db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def fund_wallet(test_db):
    def _fund_wallet(user, amount):
        wallet = test_db.query(Wallet).filter(Wallet.user_id == user.account_id).first()
        if wallet is None:
            wallet = Wallet(user_id=user.account_id, balance=Decimal(str(amount)))
            test_db.add(wallet)
        else:
            wallet.balance = Decimal(str(amount))
        test_db.commit()
        return wallet

    return _fund_wallet


@pytest.fixture
def make_project(test_db):
    def _make_project(owner, *, details=None, status=ProjectStatus.PUBLISHED, **fields):
        project = Project(
            owner_id=owner.account_id,
            details=details if details is not None else {"product": "Rice Farm Expansion", "loanAmount": 500000},
            status=status,
            **fields,
        )
        test_db.add(project)
        test_db.commit()
        test_db.refresh(project)
        return project

    return _make_project


@pytest.fixture
def make_investor_profile(test_db):
    def _make_investor_profile(user, *, annual_income=None, verification_status=None, **fields):
        profile = InvestorProfile(
            user_id=user.account_id,
            annual_income=Decimal(str(annual_income)) if annual_income is not None else None,
            verification_status=verification_status,
            **fields,
        )
        user.has_investor_account = True
        test_db.add(profile)
        test_db.commit()
        test_db.refresh(profile)
        return profile

    return _make_investor_profile


@pytest.fixture
def grant_capabilities(test_db):
    """Make ``user`` an active team member holding exactly ``keys``."""

    def _grant(user, keys, *, owner=None, role="member"):
        member = TeamMember(
            owner_id=(owner or user).account_id,
            member_id=user.account_id,
            email=user.email,
            role=role,
            status="active",
        )
        test_db.add(member)
        test_db.flush()
        for key in keys:
            test_db.add(TeamMemberPermission(team_member_id=member.id, permission_key=key, can_access=True))
        test_db.commit()
        return member

    return _grant
