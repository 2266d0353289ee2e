import pytest
from werkzeug.security import generate_password_hash

from app.teamforms import create_app
from app.teamforms.audit import events_for
from app.teamforms.db import session_scope
from app.teamforms.models import Base, User


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
    with session_scope(app) as s:
        s.add(User(name="Admin", email="admin@example.com", password_hash=generate_password_hash("pw"), role="admin"))

    c = app.test_client()
    r = c.post("/v1/auth/login", json={"email": "admin@example.com", "password": "pw"})
    assert r.status_code == 200
    return c


def _create_user(client, email, **extra):
    payload = {"name": email.split("@")[0].title(), "email": email, "password": "password1"}
    payload.update(extra)
    r = client.post("/v1/users", json=payload)
    assert r.status_code == 201, r.json
    return r.json


def test_create_user_normalizes_and_hides_password(client):
    user = _create_user(client, "  Alice@Example.com ")
    assert user["email"] == "alice@example.com"
    assert user["role"] == "user"
    assert "password" not in user
    assert "password_hash" not in user


def test_duplicate_email_rejected(client):
    _create_user(client, "alice@example.com")
    r = client.post("/v1/users", json={"name": "Again", "email": "ALICE@example.com", "password": "password1"})
    assert r.status_code == 400
    assert r.json["message"] == "Email already taken"


def test_password_rules(client):
    r = client.post("/v1/users", json={"name": "Bob", "email": "bob@example.com", "password": "short1"})
    assert r.status_code == 400
    r = client.post("/v1/users", json={"name": "Bob", "email": "bob@example.com", "password": "onlyletters"})
    assert r.status_code == 400
    assert "letter and one number" in r.json["message"]


def test_created_user_can_log_in_until_soft_deleted(client):
    user = _create_user(client, "carol@example.com")

    other = client.application.test_client()
    r = other.post("/v1/auth/login", json={"email": "carol@example.com", "password": "password1"})
    assert r.status_code == 200
    assert other.get("/v1/auth/me").json["id"] == user["id"]

    assert client.delete(f"/v1/users/{user['id']}").status_code == 204
    assert other.get("/v1/auth/me").status_code == 401


def test_hard_delete_prunes_team_membership(client):
    manager = _create_user(client, "manager@example.com")
    alice = _create_user(client, "alice@example.com")
    r = client.post("/v1/teams", json={"name": "Ops", "manager": manager["id"], "users": [alice["id"]]})
    team_id = r.json["id"]

    r = client.delete(f"/v1/users/{alice['id']}", query_string={"hardDelete": "true"})
    assert r.status_code == 204
    assert client.get(f"/v1/users/{alice['id']}").status_code == 404
    assert client.get(f"/v1/teams/{team_id}").json["users"] == []


def test_manager_cannot_be_hard_deleted(client):
    manager = _create_user(client, "manager@example.com")
    client.post("/v1/teams", json={"name": "Ops", "manager": manager["id"]})

    r = client.delete(f"/v1/users/{manager['id']}", query_string={"hardDelete": "true"})
    assert r.status_code == 409
    assert r.json["kind"] == "InUse"
    assert client.get(f"/v1/users/{manager['id']}").status_code == 200


def test_list_users_by_role(client):
    _create_user(client, "a@example.com")
    _create_user(client, "b@example.com", role="admin")

    r = client.get("/v1/users", query_string={"role": "admin", "sortBy": "email"})
    assert [u["email"] for u in r.json["results"]] == ["admin@example.com", "b@example.com"]


def test_admin_can_hard_delete_own_account(client):
    me = client.get("/v1/auth/me").json

    r = client.delete(f"/v1/users/{me['id']}", query_string={"hardDelete": "true"})
    assert r.status_code == 204

    # Session now points at a missing user
    assert client.get("/v1/auth/me").status_code == 401

    with session_scope(client.application) as s:
        assert s.get(User, me["id"]) is None
        trail = events_for(s, "User", me["id"])
    deleted = [e for e in trail if e.action == "user.hard_delete"]
    assert len(deleted) == 1
    assert deleted[0].actor_user_id is None
    assert deleted[0].actor_user_email == "admin@example.com"
