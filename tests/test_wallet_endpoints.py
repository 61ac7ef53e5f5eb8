from decimal import Decimal

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from config import TOPUP_REQUEST_MAX_PER_HOUR
from core.db import get_db
from models import Notification, TopupRequest, User, Wallet, WalletTransaction
from routers.dependencies import get_current_user
from routers.wallet import api as wallet_api


@pytest.fixture
def current_user(test_db):
    return test_db.query(User).filter(User.descope_user_id == "test_user_1").one()


@pytest.fixture
def acting(current_user):
    return {"user": current_user}


@pytest.fixture
def client(test_db, acting):
    app = FastAPI()
    app.include_router(wallet_api.router)

    def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: acting["user"]

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides = {}


def _topup_payload(amount=5000):
    return {
        "amount": amount,
        "transfer_date": "2026-10-01",
        "account_name": "Juan Dela Cruz",
        "account_number": "001122334455",
        "bank_name": "BDO",
        "reference": "REF-7781",
    }


class TestWallet:
    def test_wallet_of_new_user_is_empty(self, client):
        response = client.get("/api/wallet")

        assert response.status_code == 200
        assert response.json() == {"balance": 0.0, "currency": "PHP"}

    def test_wallet_with_transactions(self, client, test_db, current_user, fund_wallet):
        fund_wallet(current_user, 100)
        client.post("/api/wallet/withdraw", json={"amount": 30})

        response = client.get("/api/wallet?include_transactions=true")

        payload = response.json()
        assert payload["balance"] == 70.0
        assert len(payload["transactions"]) == 1
        assert payload["transactions"][0]["kind"] == "withdrawal"
        assert payload["transactions"][0]["amount"] == -30.0

    def test_withdraw_more_than_balance(self, client, current_user, fund_wallet):
        fund_wallet(current_user, 10)

        response = client.post("/api/wallet/withdraw", json={"amount": 25})

        assert response.status_code == 400
        assert response.json()["detail"]["shortfall"] == 15.0

    def test_withdraw_without_wallet(self, client):
        response = client.post("/api/wallet/withdraw", json={"amount": 5})

        assert response.status_code == 400
        assert response.json()["detail"]["current_balance"] == 0.0


class TestTopup:
    def test_platform_accounts(self, client):
        accounts = client.get("/api/topup/accounts").json()["accounts"]
        assert [a["bank_name"] for a in accounts] == ["BDO", "BPI"]

    def test_create_and_list_my_requests(self, client, test_db, current_user):
        response = client.post("/api/topup/request", json=_topup_payload())

        assert response.status_code == 201
        assert response.json()["status"] == "pending"
        topup = test_db.query(TopupRequest).one()
        assert topup.user_id == current_user.account_id
        assert topup.amount == Decimal("5000.00")

        mine = client.get("/api/topup/my-requests").json()["requests"]
        assert len(mine) == 1
        assert mine[0]["reference"] == "REF-7781"

    def test_create_is_rate_limited(self, client):
        for _ in range(TOPUP_REQUEST_MAX_PER_HOUR):
            assert client.post("/api/topup/request", json=_topup_payload(100)).status_code == 201

        response = client.post("/api/topup/request", json=_topup_payload(100))

        assert response.status_code == 429
        assert "Retry-After" in response.headers

    def test_approval_credits_wallet_once(self, client, acting, test_db, current_user, make_user):
        client.post("/api/topup/request", json=_topup_payload(2500))
        request_id = test_db.query(TopupRequest).one().id
        acting["user"] = make_user(is_admin=True)

        response = client.post(
            f"/api/admin/topup-requests/{request_id}/review",
            json={"action": "approved", "admin_notes": "Matched bank statement"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "request_id": request_id,
            "status": "approved",
            "wallet_updated": True,
            "new_balance": 2500.0,
        }
        test_db.expire_all()
        wallet = test_db.query(Wallet).filter(Wallet.user_id == current_user.account_id).one()
        assert wallet.balance == Decimal("2500.00")
        ledger = test_db.query(WalletTransaction).one()
        assert ledger.kind == "topup"
        assert ledger.reference_id == str(request_id)

        again = client.post(f"/api/admin/topup-requests/{request_id}/review", json={"action": "approved"})
        assert again.status_code == 400
        test_db.expire_all()
        assert test_db.query(Wallet).filter(Wallet.user_id == current_user.account_id).one().balance == Decimal("2500.00")

        inbox = test_db.query(Notification).filter(Notification.user_id == current_user.account_id).all()
        assert [(n.notification_type, n.related_request_id) for n in inbox] == [("topup_approved", str(request_id))]
        assert inbox[0].message == "Your top-up of PHP 2,500.00 was credited to your wallet."

    def test_rejection_leaves_wallet_untouched(self, client, acting, test_db, current_user, make_user):
        client.post("/api/topup/request", json=_topup_payload())
        request_id = test_db.query(TopupRequest).one().id
        acting["user"] = make_user(is_admin=True)

        response = client.post(f"/api/admin/topup-requests/{request_id}/review", json={"action": "rejected"})

        assert response.json()["wallet_updated"] is False
        assert response.json()["new_balance"] is None
        assert test_db.query(Wallet).count() == 0
        notification = test_db.query(Notification).one()
        assert notification.user_id == current_user.account_id
        assert notification.notification_type == "topup_rejected"
        assert notification.link == "/wallet"

    def test_review_unknown_request(self, client, acting, make_user):
        acting["user"] = make_user(is_admin=True)
        assert client.post("/api/admin/topup-requests/424242/review", json={"action": "approved"}).status_code == 404

    def test_admin_list_and_capabilities(self, client, acting, current_user, make_user, grant_capabilities):
        client.post("/api/topup/request", json=_topup_payload())

        acting["user"] = current_user
        assert client.get("/api/admin/topup-requests").status_code == 403

        viewer = make_user()
        grant_capabilities(viewer, ["topup.view"])
        acting["user"] = viewer
        listing = client.get("/api/admin/topup-requests?status=pending")
        assert listing.status_code == 200
        assert listing.json()["requests"][0]["full_name"] == "Test User One"
        assert client.post("/api/admin/topup-requests/1/review", json={"action": "approved"}).status_code == 403
