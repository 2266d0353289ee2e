import pytest
from werkzeug.security import generate_password_hash

from app.teamforms import create_app
from app.teamforms.db import session_scope
from app.teamforms.models import Base, User
from app.teamforms.modules.questions.models import QuestionType
from app.teamforms.modules.questions.service import create_question_type, update_question_type_by_id


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
    with session_scope(app) as s:
        s.add(User(name="Admin", email="admin@example.com", password_hash=generate_password_hash("pw"), role="admin"))
    return app


@pytest.fixture()
def client(app):
    c = app.test_client()
    r = c.post("/v1/auth/login", json={"email": "admin@example.com", "password": "pw"})
    assert r.status_code == 200
    return c


def _question_type(client, **extra):
    payload = {"name": "Scale", "values": {"min": 1, "max": 5}}
    payload.update(extra)
    r = client.post("/v1/questionTypes", json=payload)
    assert r.status_code == 201, r.json
    return r.json


def test_question_type_values_are_replaced(client):
    qt = _question_type(client, units="points")
    assert qt["values"] == {"min": 1, "max": 5}
    assert qt["units"] == "points"

    r = client.patch(f"/v1/questionTypes/{qt['id']}", json={"values": {"choices": ["yes", "no"]}})
    assert r.status_code == 200
    assert r.json["values"] == {"choices": ["yes", "no"]}

    r = client.get(f"/v1/questionTypes/{qt['id']}")
    assert r.json["values"] == {"choices": ["yes", "no"]}
    assert r.json["units"] == "points"


def test_question_type_values_edited_in_place_persist(app):
    with session_scope(app) as s:
        qt_id = create_question_type(s, {"name": "Scale", "values": {"min": 1}}).id

    with session_scope(app) as s:
        values = s.get(QuestionType, qt_id).values
        values["max"] = 10
        update_question_type_by_id(s, qt_id, {"values": values})

    with session_scope(app) as s:
        assert s.get(QuestionType, qt_id).values == {"min": 1, "max": 10}


def test_question_type_validation(client):
    r = client.post("/v1/questionTypes", json={"name": "Scale", "values": [1, 2]})
    assert r.status_code == 400
    assert r.json["kind"] == "ValidationFailure"

    r = client.post("/v1/questionTypes", json={"name": "", "values": {}, "units": 5})
    assert r.status_code == 400
    assert "Name is required." in r.json["message"]
    assert "Units must be a string." in r.json["message"]


def test_question_defaults_and_reference_check(client):
    qt = _question_type(client)

    r = client.post("/v1/questions", json={"question": "How many?", "questionType": qt["id"]})
    assert r.status_code == 201
    assert r.json["comments"] is False
    assert r.json["optional"] is False
    assert r.json["status"] == "Active"
    assert r.json["questionType"] == qt["id"]

    r = client.post("/v1/questions", json={"question": "How many?", "questionType": "0" * 24})
    assert r.status_code == 400
    assert r.json["kind"] == "InvalidReference"
    assert r.json["message"] == "QuestionType does not exist"

    r = client.patch(f"/v1/questions/{'0' * 24}", json={"optional": True})
    assert r.status_code == 404
    assert r.json["message"] == "Question not found"


def test_question_boolean_filters(client):
    qt = _question_type(client)
    client.post("/v1/questions", json={"question": "a", "questionType": qt["id"], "optional": True})
    client.post("/v1/questions", json={"question": "b", "questionType": qt["id"], "comments": "true"})
    client.post("/v1/questions", json={"question": "c", "questionType": qt["id"]})

    r = client.get("/v1/questions", query_string={"optional": "true"})
    assert [q["question"] for q in r.json["results"]] == ["a"]

    r = client.get("/v1/questions", query_string={"optional": "false", "comments": "false"})
    assert [q["question"] for q in r.json["results"]] == ["c"]

    r = client.get("/v1/questions", query_string={"optional": "sometimes"})
    assert r.status_code == 400

    r = client.post("/v1/questions", json={"question": "d", "questionType": qt["id"], "optional": "yes"})
    assert r.status_code == 400


def test_question_type_in_use_cannot_be_hard_deleted(client):
    qt = _question_type(client)
    r = client.post("/v1/questions", json={"question": "How many?", "questionType": qt["id"]})
    question_id = r.json["id"]

    r = client.delete(f"/v1/questionTypes/{qt['id']}", query_string={"hardDelete": "true"})
    assert r.status_code == 409
    assert r.json["kind"] == "InUse"
    assert client.get(f"/v1/questionTypes/{qt['id']}").status_code == 200

    # Soft delete is always allowed
    assert client.delete(f"/v1/questionTypes/{qt['id']}").status_code == 204

    assert client.delete(f"/v1/questions/{question_id}", query_string={"hardDelete": "true"}).status_code == 204
    assert client.delete(f"/v1/questionTypes/{qt['id']}", query_string={"hardDelete": "true"}).status_code == 204
    assert client.get(f"/v1/questionTypes/{qt['id']}").status_code == 404
