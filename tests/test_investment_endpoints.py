from decimal import Decimal

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.db import get_db
from models import (
    InvestmentRequest,
    InvestmentStatus,
    InvestorProfile,
    Notification,
    Project,
    ProjectFunding,
    ProjectStatus,
    User,
    Wallet,
    WalletTransaction,
)
from routers.dependencies import get_current_user
from routers.projects import api as projects_api


@pytest.fixture
def borrower(test_db):
    return test_db.query(User).filter(User.descope_user_id == "test_user_1").one()


@pytest.fixture
def investor(test_db):
    return test_db.query(User).filter(User.descope_user_id == "test_user_2").one()


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", is_admin=True)


@pytest.fixture
def project(borrower, make_project):
    return make_project(borrower, details={"product": "Mango Orchard", "loanAmount": 800000})


@pytest.fixture
def acting(borrower):
    return {"user": borrower}


@pytest.fixture
def client(test_db, acting):
    app = FastAPI()
    app.include_router(projects_api.router)

    def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: acting["user"]

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides = {}


def _balance(test_db, user):
    test_db.expire_all()
    wallet = test_db.query(Wallet).filter(Wallet.user_id == user.account_id).first()
    return wallet.balance if wallet else Decimal("0")


def _invest(client, acting, user, project_id, amount):
    acting["user"] = user
    return client.post(f"/api/projects/{project_id}/invest", json={"amount": amount})


def _review(client, acting, reviewer, project_id, investor_id, action, comment=None):
    acting["user"] = reviewer
    body = {"action": action}
    if comment is not None:
        body["comment"] = comment
    return client.post(
        f"/api/admin/projects/{project_id}/investments/{investor_id}/review", json=body
    )


class TestSubmitInvestment:
    def test_amount_above_income_limit_is_rejected_with_breakdown(
        self, client, acting, test_db, investor, project, fund_wallet, make_investor_profile
    ):
        make_investor_profile(investor, annual_income=1000000, verification_status="verified")
        fund_wallet(investor, 100000)

        response = _invest(client, acting, investor, project.id, 60000)

        assert response.status_code == 400
        assert response.json()["detail"] == {
            "error": "Investment amount exceeds your limit",
            "annual_income": 1000000.0,
            "max_percentage": 5,
            "max_amount": 50000.0,
            "requested_amount": 60000.0,
            "excess": 10000.0,
        }
        assert test_db.query(InvestmentRequest).count() == 0

    def test_amount_equal_to_limit_is_accepted_as_pending(
        self, client, acting, test_db, investor, project, fund_wallet, make_investor_profile
    ):
        make_investor_profile(investor, annual_income=1000000, verification_status="verified")
        fund_wallet(investor, 100000)

        response = _invest(client, acting, investor, project.id, 50000)

        assert response.status_code == 201
        payload = response.json()
        assert payload["status"] == "pending"
        assert payload["max_percentage"] == 5
        assert payload["max_amount"] == 50000.0

        request = test_db.query(InvestmentRequest).one()
        assert request.status == InvestmentStatus.PENDING
        assert request.amount == Decimal("50000.00")
        assert request.used_default_income is False
        # submission never moves money
        assert _balance(test_db, investor) == Decimal("100000.00")

    def test_high_income_investor_gets_ten_percent(
        self, client, acting, investor, project, fund_wallet, make_investor_profile
    ):
        make_investor_profile(investor, annual_income=2000000, verification_status="verified")
        fund_wallet(investor, 500000)

        response = _invest(client, acting, investor, project.id, 200000)

        assert response.status_code == 201
        assert response.json()["max_percentage"] == 10
        assert response.json()["max_amount"] == 200000.0

    def test_investor_without_profile_is_assessed_on_default_income(
        self, client, acting, test_db, investor, project, fund_wallet
    ):
        fund_wallet(investor, 100000)

        response = _invest(client, acting, investor, project.id, 50000)

        assert response.status_code == 201
        request = test_db.query(InvestmentRequest).one()
        assert request.annual_income == Decimal("1000000.00")
        assert request.verification_status == "verified"
        assert request.used_default_income is True

    def test_balance_shortfall_is_reported(
        self, client, acting, investor, project, fund_wallet, make_investor_profile
    ):
        make_investor_profile(investor, annual_income=1000000, verification_status="verified")
        fund_wallet(investor, 10000)

        response = _invest(client, acting, investor, project.id, 25000)

        assert response.status_code == 400
        assert response.json()["detail"] == {
            "error": "Insufficient wallet balance",
            "current_balance": 10000.0,
            "required_amount": 25000.0,
            "shortfall": 15000.0,
        }

    def test_owner_cannot_invest_in_own_project(self, client, acting, borrower, project, fund_wallet):
        fund_wallet(borrower, 100000)

        response = _invest(client, acting, borrower, project.id, 1000)

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "You cannot invest in your own project"

    def test_second_request_for_same_project_is_rejected(
        self, client, acting, test_db, investor, project, fund_wallet
    ):
        fund_wallet(investor, 100000)
        assert _invest(client, acting, investor, project.id, 1000).status_code == 201

        response = _invest(client, acting, investor, project.id, 2000)

        assert response.status_code == 400
        assert response.json()["detail"]["status"] == "pending"
        assert test_db.query(InvestmentRequest).count() == 1

    @pytest.mark.parametrize("decision, final_status", [("approve", "approved"), ("reject", "rejected")])
    def test_resubmission_after_review_is_rejected(
        self, client, acting, test_db, admin, investor, project, fund_wallet, decision, final_status
    ):
        fund_wallet(investor, 100000)
        assert _invest(client, acting, investor, project.id, 10000).status_code == 201
        assert _review(client, acting, admin, project.id, investor.account_id, decision).status_code == 200
        balance_after_review = _balance(test_db, investor)

        response = _invest(client, acting, investor, project.id, 5000)

        assert response.status_code == 400
        assert response.json()["detail"]["status"] == final_status
        assert test_db.query(InvestmentRequest).count() == 1
        assert _balance(test_db, investor) == balance_after_review

    def test_unknown_or_deleted_project_is_404(
        self, client, acting, test_db, investor, borrower, make_project, fund_wallet
    ):
        fund_wallet(investor, 100000)
        deleted = make_project(borrower, status=ProjectStatus.DELETED)

        assert _invest(client, acting, investor, 999999, 1000).status_code == 404
        assert _invest(client, acting, investor, deleted.id, 1000).status_code == 404

    def test_non_positive_amount_fails_validation(self, client, acting, investor, project):
        assert _invest(client, acting, investor, project.id, 0).status_code == 422
        assert _invest(client, acting, investor, project.id, -10).status_code == 422


class TestReviewInvestment:
    def test_approval_moves_money_and_records_funding(
        self, client, acting, test_db, admin, investor, project, fund_wallet, make_investor_profile
    ):
        make_investor_profile(investor, annual_income=1000000, verification_status="verified")
        fund_wallet(investor, 100000)
        assert _invest(client, acting, investor, project.id, 40000).status_code == 201

        response = _review(client, acting, admin, project.id, investor.account_id, "approve", "Looks good")

        assert response.status_code == 200
        payload = response.json()
        assert payload["status"] == "approved"
        assert payload["new_balance"] == 60000.0
        assert payload["total_funded"] == 40000.0

        test_db.expire_all()
        assert _balance(test_db, investor) == Decimal("60000.00")
        request = test_db.query(InvestmentRequest).one()
        assert request.status == InvestmentStatus.APPROVED
        assert request.admin_comment == "Looks good"
        assert request.reviewed_by == admin.account_id
        assert request.reviewed_at is not None

        funding = test_db.query(ProjectFunding).one()
        assert funding.investor_id == investor.account_id
        assert funding.amount == Decimal("40000.00")
        assert test_db.get(Project, project.id).total_funded == Decimal("40000.00")

        profile = test_db.query(InvestorProfile).filter(InvestorProfile.user_id == investor.account_id).one()
        assert profile.portfolio_value == Decimal("40000.00")

        ledger = test_db.query(WalletTransaction).filter(WalletTransaction.user_id == investor.account_id).all()
        assert [(e.kind, e.amount) for e in ledger] == [("investment", Decimal("-40000.00"))]

    def test_rejection_moves_no_money(self, client, acting, test_db, admin, investor, project, fund_wallet):
        fund_wallet(investor, 100000)
        _invest(client, acting, investor, project.id, 30000)

        response = _review(client, acting, admin, project.id, investor.account_id, "reject", "Incomplete KYC")

        assert response.status_code == 200
        assert response.json()["status"] == "rejected"
        assert _balance(test_db, investor) == Decimal("100000.00")
        assert test_db.query(ProjectFunding).count() == 0
        request = test_db.query(InvestmentRequest).one()
        assert request.status == InvestmentStatus.REJECTED
        assert request.admin_comment == "Incomplete KYC"

    def test_review_outcomes_land_in_inboxes(
        self, client, acting, test_db, admin, borrower, investor, project, make_user, fund_wallet
    ):
        second = make_user(email="second@example.com")
        fund_wallet(investor, 100000)
        fund_wallet(second, 100000)
        _invest(client, acting, investor, project.id, 40000)
        _invest(client, acting, second, project.id, 20000)

        _review(client, acting, admin, project.id, investor.account_id, "approve")
        _review(client, acting, admin, project.id, second.account_id, "reject", "Incomplete KYC")

        def inbox(user):
            rows = (
                test_db.query(Notification)
                .filter(Notification.user_id == user.account_id)
                .order_by(Notification.id)
                .all()
            )
            return [(n.notification_type, n.related_request_type, n.related_request_id) for n in rows]

        key = ("investment", str(project.id))
        assert inbox(borrower) == [
            ("investment_submitted", *key),
            ("investment_submitted", *key),
            ("investment_received", *key),
        ]
        assert inbox(investor) == [("investment_approved", *key)]
        assert inbox(second) == [("investment_rejected", *key)]

        approved = test_db.query(Notification).filter(Notification.user_id == investor.account_id).one()
        assert approved.message == "Your investment of PHP 40,000.00 in Mango Orchard was approved."
        assert approved.is_read is False
        declined = test_db.query(Notification).filter(Notification.user_id == second.account_id).one()
        assert declined.message.endswith("Reason: Incomplete KYC")

    def test_failed_approval_sends_nothing(self, client, acting, test_db, admin, investor, project, fund_wallet):
        fund_wallet(investor, 50000)
        _invest(client, acting, investor, project.id, 40000)
        fund_wallet(investor, 10000)

        assert _review(client, acting, admin, project.id, investor.account_id, "approve").status_code == 400

        assert test_db.query(Notification).filter(Notification.user_id == investor.account_id).count() == 0

    def test_shortfall_at_approval_leaves_request_pending(
        self, client, acting, test_db, admin, investor, project, fund_wallet
    ):
        fund_wallet(investor, 50000)
        assert _invest(client, acting, investor, project.id, 45000).status_code == 201
        # balance drops between submission and review
        fund_wallet(investor, 20000)

        response = _review(client, acting, admin, project.id, investor.account_id, "approve")

        assert response.status_code == 400
        assert response.json()["detail"]["shortfall"] == 25000.0
        test_db.expire_all()
        assert test_db.query(InvestmentRequest).one().status == InvestmentStatus.PENDING
        assert _balance(test_db, investor) == Decimal("20000.00")
        assert test_db.query(ProjectFunding).count() == 0
        assert test_db.get(Project, project.id).total_funded == Decimal("0.00")

    def test_request_can_only_be_reviewed_once(self, client, acting, admin, investor, project, fund_wallet):
        fund_wallet(investor, 100000)
        _invest(client, acting, investor, project.id, 10000)
        assert _review(client, acting, admin, project.id, investor.account_id, "approve").status_code == 200

        again = _review(client, acting, admin, project.id, investor.account_id, "reject")

        assert again.status_code == 400
        assert again.json()["detail"]["status"] == "approved"

    def test_rejected_request_cannot_be_approved_later(
        self, client, acting, test_db, admin, investor, project, fund_wallet
    ):
        fund_wallet(investor, 100000)
        _invest(client, acting, investor, project.id, 20000)
        assert _review(client, acting, admin, project.id, investor.account_id, "reject").status_code == 200

        again = _review(client, acting, admin, project.id, investor.account_id, "approve")

        assert again.status_code == 400
        assert again.json()["detail"]["status"] == "rejected"
        assert _balance(test_db, investor) == Decimal("100000.00")
        assert test_db.query(ProjectFunding).count() == 0
        assert test_db.get(Project, project.id).total_funded == Decimal("0.00")
        assert test_db.query(WalletTransaction).count() == 0

    def test_reviewer_cannot_decide_own_request(
        self, client, acting, test_db, investor, project, grant_capabilities, fund_wallet
    ):
        grant_capabilities(investor, ["investments.view", "investments.manage"])
        fund_wallet(investor, 100000)
        assert _invest(client, acting, investor, project.id, 10000).status_code == 201

        response = _review(client, acting, investor, project.id, investor.account_id, "approve")

        assert response.status_code == 403
        test_db.expire_all()
        assert test_db.query(InvestmentRequest).one().status == InvestmentStatus.PENDING
        assert _balance(test_db, investor) == Decimal("100000.00")

    def test_missing_request_is_404(self, client, acting, admin, investor, project):
        response = _review(client, acting, admin, project.id, investor.account_id, "approve")
        assert response.status_code == 404

    def test_total_funded_sums_across_investors(
        self, client, acting, test_db, admin, investor, project, make_user, fund_wallet
    ):
        second = make_user()
        fund_wallet(investor, 100000)
        fund_wallet(second, 100000)
        _invest(client, acting, investor, project.id, 10000)
        _invest(client, acting, second, project.id, 15000)

        _review(client, acting, admin, project.id, investor.account_id, "approve")
        response = _review(client, acting, admin, project.id, second.account_id, "approve")

        assert response.json()["total_funded"] == 25000.0
        assert test_db.query(ProjectFunding).count() == 2

    def test_reviewer_needs_manage_capability(
        self, client, acting, investor, project, make_user, grant_capabilities, fund_wallet
    ):
        fund_wallet(investor, 100000)
        _invest(client, acting, investor, project.id, 10000)

        viewer = make_user()
        grant_capabilities(viewer, ["investments.view"])
        denied = _review(client, acting, viewer, project.id, investor.account_id, "approve")
        assert denied.status_code == 403
        assert denied.json()["detail"] == "Missing permission: investments.manage"

        manager = make_user()
        grant_capabilities(manager, ["investments.view", "investments.manage"])
        allowed = _review(client, acting, manager, project.id, investor.account_id, "approve")
        assert allowed.status_code == 200


class TestInvestmentListings:
    def test_admin_queue_filters_by_status(self, client, acting, admin, investor, project, make_user, fund_wallet):
        other = make_user()
        fund_wallet(investor, 100000)
        fund_wallet(other, 100000)
        _invest(client, acting, investor, project.id, 10000)
        _invest(client, acting, other, project.id, 5000)
        _review(client, acting, admin, project.id, other.account_id, "reject")

        acting["user"] = admin
        response = client.get("/api/admin/investment-requests?status=pending")

        assert response.status_code == 200
        requests = response.json()["requests"]
        assert len(requests) == 1
        assert requests[0]["investor_id"] == investor.account_id
        assert requests[0]["project_title"] == "Mango Orchard"
        assert requests[0]["borrower_name"] == "Test User One"

    def test_admin_queue_requires_capability(self, client, acting, investor):
        acting["user"] = investor
        assert client.get("/api/admin/investment-requests").status_code == 403

    def test_user_sees_own_requests(self, client, acting, investor, project, fund_wallet):
        fund_wallet(investor, 100000)
        _invest(client, acting, investor, project.id, 12345.67)

        acting["user"] = investor
        response = client.get("/api/user/investments")

        assert response.status_code == 200
        requests = response.json()["requests"]
        assert len(requests) == 1
        assert requests[0]["amount"] == 12345.67
        assert requests[0]["status"] == "pending"
