import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.db import get_db
from models import BorrowRequest, InvestorProfile, User
from routers.auth import api as auth_api
from routers.dependencies import get_current_claims, get_current_user


@pytest.fixture
def current_user(test_db):
    return test_db.query(User).filter(User.descope_user_id == "test_user_1").one()


@pytest.fixture
def claims():
    return {"userId": "test_user_1", "email": "test1@example.com", "name": "Test User One"}


@pytest.fixture
def client(test_db, current_user, claims):
    app = FastAPI()
    app.include_router(auth_api.router)

    def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_claims] = lambda: claims
    app.dependency_overrides[get_current_user] = lambda: current_user

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides = {}


class TestProfile:
    def test_get_existing_profile(self, client, current_user):
        response = client.get("/api/profile")

        assert response.status_code == 200
        assert response.json()["account_id"] == current_user.account_id
        assert response.json()["username"] == "testuser1"

    def test_get_profile_for_new_subject_returns_defaults(self, client, claims):
        claims["userId"] = "brand_new_subject"
        claims["email"] = "new@example.com"

        payload = client.get("/api/profile").json()

        assert payload["account_id"] is None
        assert payload["email"] == "new@example.com"
        assert payload["has_completed_registration"] is False

    def test_upsert_creates_user_for_new_subject(self, client, test_db, claims):
        claims["userId"] = "brand_new_subject"
        claims["email"] = "new@example.com"

        response = client.post("/api/profile", json={"full_name": "Maria Santos", "role": "borrower", "username": "maria_s"})

        assert response.status_code == 200
        profile = response.json()["profile"]
        assert profile["full_name"] == "Maria Santos"
        assert profile["role"] == "borrower"
        created = test_db.query(User).filter(User.descope_user_id == "brand_new_subject").one()
        assert created.email == "new@example.com"

    def test_username_must_be_unique_case_insensitive(self, client):
        response = client.post("/api/profile", json={"full_name": "Someone", "username": "TestUser2"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Username already taken"

    def test_username_format(self, client):
        assert client.post("/api/profile", json={"full_name": "X", "username": "no spaces!"}).status_code == 400
        assert client.post("/api/profile", json={"full_name": "X", "username": "ab"}).status_code == 400

    def test_set_role_and_complete_registration(self, client, test_db, current_user):
        assert client.post("/api/profile/set-role", json={"role": "investor"}).json() == {"success": True, "role": "investor"}
        assert client.post("/api/profile/complete-registration").status_code == 200
        test_db.expire_all()
        user = test_db.get(User, current_user.account_id)
        assert user.current_account_type == "investor"
        assert user.has_completed_registration is True


class TestSettings:
    def test_defaults_are_created_on_first_read(self, client):
        settings = client.get("/api/settings").json()
        assert settings == {
            "email_notifications": True,
            "sms_notifications": False,
            "marketing_emails": False,
            "language": "en",
            "timezone": "Asia/Manila",
        }

    def test_partial_update(self, client):
        updated = client.put("/api/settings", json={"sms_notifications": True, "language": "fil"}).json()
        assert updated["sms_notifications"] is True
        assert updated["language"] == "fil"
        assert updated["email_notifications"] is True


class TestAccounts:
    def test_create_investor_account_and_switch(self, client, test_db, current_user):
        response = client.post(
            "/api/accounts/create",
            json={
                "account_type": "investor",
                "investor": {
                    "location": "Cebu",
                    "phone_number": "+639171234567",
                    "annual_income": 2500000,
                    "verification_status": "verified",
                },
            },
        )

        assert response.status_code == 201
        assert response.json()["current_account_type"] == "investor"
        accounts = client.get("/api/accounts").json()
        assert accounts["has_investor_account"] is True
        assert accounts["investor"]["annual_income"] == 2500000.0
        assert accounts["investor"]["is_complete"] is True
        assert accounts["borrower"] is None

        assert client.post("/api/accounts/create", json={"account_type": "investor"}).status_code == 409
        assert client.post("/api/accounts/switch", json={"account_type": "borrower"}).status_code == 400

        client.post("/api/accounts/create", json={"account_type": "borrower"})
        switched = client.post("/api/accounts/switch", json={"account_type": "borrower"})
        assert switched.json()["current_account_type"] == "borrower"

    def test_update_investor_profile_recomputes_completeness(self, client, test_db, current_user):
        client.post("/api/accounts/create", json={"account_type": "investor"})

        partial = client.put("/api/accounts/investor", json={"location": "Davao"}).json()
        assert partial["is_complete"] is False

        complete = client.put(
            "/api/accounts/investor", json={"phone_number": "+639170000000", "annual_income": 900000}
        ).json()
        assert complete["is_complete"] is True
        profile = test_db.query(InvestorProfile).filter(InvestorProfile.user_id == current_user.account_id).one()
        assert float(profile.annual_income) == 900000.0

    def test_update_missing_borrower_account(self, client):
        assert client.put("/api/accounts/borrower", json={"occupation": "Farmer"}).status_code == 404

    def test_borrow_request(self, client, test_db, current_user):
        response = client.post(
            "/api/borrow-requests",
            json={"national_id": "1234-5678", "municipality": "Tagum", "province": "Davao del Norte", "country": "PH"},
        )

        assert response.status_code == 201
        stored = test_db.query(BorrowRequest).one()
        assert stored.user_id == current_user.account_id
        assert stored.province == "Davao del Norte"
