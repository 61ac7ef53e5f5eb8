from unittest.mock import MagicMock, patch

import pytest
from fastapi import Depends, FastAPI, HTTPException
from fastapi.testclient import TestClient

import auth
from core.db import get_db
from models import TeamMember, TeamMemberPermission, User
from routers.dependencies import (
    PERMISSION_KEYS,
    get_capabilities,
    get_current_user,
    require_capability,
)


@pytest.fixture
def client(test_db):
    app = FastAPI()

    @app.get("/me")
    def me(user: User = Depends(get_current_user)):
        return {"account_id": user.account_id}

    @app.get("/topups")
    def topups(user: User = Depends(require_capability("topup.view"))):
        return {"ok": True}

    def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client


def _identity(subject, email=None):
    return {"userId": subject, "email": email, "name": None}


class TestCurrentUser:
    def test_missing_token(self, client):
        response = client.get("/me")
        assert response.status_code == 401
        assert response.json()["detail"] == "Authorization token missing."

    def test_non_bearer_header(self, client):
        assert client.get("/me", headers={"Authorization": "Basic abc"}).status_code == 401

    def test_invalid_token_is_rejected(self, client):
        with patch(
            "routers.dependencies.validate_descope_jwt",
            side_effect=HTTPException(status_code=401, detail="Invalid or expired token"),
        ):
            response = client.get("/me", headers={"Authorization": "Bearer bad"})
        assert response.status_code == 401

    def test_known_subject_resolves_to_user(self, client, test_db):
        user = test_db.query(User).filter(User.descope_user_id == "test_user_1").one()
        with patch("routers.dependencies.validate_descope_jwt", return_value=_identity("test_user_1")):
            response = client.get("/me", headers={"Authorization": "Bearer good"})
        assert response.status_code == 200
        assert response.json() == {"account_id": user.account_id}

    def test_unknown_subject_has_no_profile(self, client):
        with patch("routers.dependencies.validate_descope_jwt", return_value=_identity("nobody")):
            response = client.get("/me", headers={"Authorization": "Bearer good"})
        assert response.status_code == 404

    def test_suspended_user_is_refused(self, client, make_user):
        user = make_user(status="suspended")
        with patch("routers.dependencies.validate_descope_jwt", return_value=_identity(user.descope_user_id)):
            response = client.get("/me", headers={"Authorization": "Bearer good"})
        assert response.status_code == 403
        assert response.json()["detail"] == "Account suspended"


class TestCapabilities:
    def test_unknown_capability_fails_at_definition(self):
        with pytest.raises(ValueError):
            require_capability("wallet.drain")

    def test_admin_holds_everything(self, test_db, make_user):
        assert get_capabilities(test_db, make_user(is_admin=True)) == set(PERMISSION_KEYS)

    def test_plain_user_holds_nothing(self, test_db, make_user):
        assert get_capabilities(test_db, make_user()) == set()

    def test_only_granted_keys_of_active_membership_count(self, test_db, make_user):
        user = make_user()
        member = TeamMember(owner_id=user.account_id, member_id=user.account_id, email=user.email, status="pending")
        test_db.add(member)
        test_db.flush()
        test_db.add_all(
            [
                TeamMemberPermission(team_member_id=member.id, permission_key="topup.view", can_access=True),
                TeamMemberPermission(team_member_id=member.id, permission_key="topup.approve", can_access=False),
            ]
        )
        test_db.commit()

        assert get_capabilities(test_db, user) == set()

        member.status = "active"
        test_db.commit()
        assert get_capabilities(test_db, user) == {"topup.view"}

    def test_gate_over_http(self, client, make_user, grant_capabilities):
        outsider = make_user()
        staff = make_user()
        grant_capabilities(staff, ["topup.view"])

        with patch("routers.dependencies.validate_descope_jwt", return_value=_identity(outsider.descope_user_id)):
            denied = client.get("/topups", headers={"Authorization": "Bearer t"})
        with patch("routers.dependencies.validate_descope_jwt", return_value=_identity(staff.descope_user_id)):
            allowed = client.get("/topups", headers={"Authorization": "Bearer t"})

        assert denied.status_code == 403
        assert denied.json()["detail"] == "Missing permission: topup.view"
        assert allowed.status_code == 200


class TestDescopeValidation:
    def test_extracts_identity_from_session(self):
        descope = MagicMock()
        descope.validate_session.return_value = {"userId": "U123", "loginIds": ["maria@example.com"], "name": "Maria"}
        with patch("auth.get_descope_client", return_value=descope):
            identity = auth.validate_descope_jwt("token")
        assert identity == {"userId": "U123", "email": "maria@example.com", "name": "Maria"}

    def test_retries_with_fallback_leeway(self):
        strict = MagicMock()
        strict.validate_session.side_effect = RuntimeError("token used before issued")
        lenient = MagicMock()
        lenient.validate_session.return_value = {"sub": "U9"}

        def _client(leeway=auth.DESCOPE_JWT_LEEWAY, with_management=False):
            return strict if leeway == auth.DESCOPE_JWT_LEEWAY else lenient

        with patch("auth.get_descope_client", side_effect=_client):
            identity = auth.validate_descope_jwt("token")
        assert identity["userId"] == "U9"

    def test_gives_up_with_401(self):
        descope = MagicMock()
        descope.validate_session.side_effect = RuntimeError("bad signature")
        with patch("auth.get_descope_client", return_value=descope):
            with pytest.raises(HTTPException) as exc_info:
                auth.validate_descope_jwt("token")
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Invalid or expired token"

    def test_session_without_subject_is_rejected(self):
        descope = MagicMock()
        descope.validate_session.return_value = {"loginIds": ["x@example.com"]}
        with patch("auth.get_descope_client", return_value=descope):
            with pytest.raises(HTTPException) as exc_info:
                auth.validate_descope_jwt("token")
        assert exc_info.value.status_code == 401
