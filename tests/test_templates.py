import pytest
from werkzeug.security import generate_password_hash

from app.teamforms import create_app
from app.teamforms.db import session_scope
from app.teamforms.models import Base, User
from app.teamforms.modules.templates.models import Template


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


def _question(client, text):
    r = client.post("/v1/questionTypes", json={"name": f"{text} type", "values": {}})
    assert r.status_code == 201
    r = client.post("/v1/questions", json={"question": text, "questionType": r.json["id"]})
    assert r.status_code == 201
    return r.json["id"]


def _template(client, questions=None):
    payload = {"name": "Weekly check-in"}
    if questions is not None:
        payload["questions"] = questions
    r = client.post("/v1/templates", json=payload)
    assert r.status_code == 201, r.json
    return r.json


def test_template_question_scenario(client):
    q1 = _question(client, "How was your week?")
    q2 = _question(client, "Any blockers?")
    q3 = _question(client, "Anything else?")

    template = _template(client)
    assert template["questions"] == []

    for q in (q1, q2, q3):
        r = client.post(f"/v1/templates/{template['id']}/questions", json={"question": q})
        assert r.status_code == 200

    r = client.delete(f"/v1/templates/{template['id']}/questions", json={"question": q2})
    assert r.status_code == 200
    assert r.json["questions"] == [q1, q3]

    r = client.get(f"/v1/templates/{template['id']}")
    assert r.json["questions"] == [q1, q3]


def test_membership_errors_name_templates_and_questions(client):
    q1 = _question(client, "How was your week?")
    template = _template(client, questions=[q1])

    r = client.post(f"/v1/templates/{template['id']}/questions", json={"question": q1})
    assert r.status_code == 400
    assert r.json["kind"] == "AlreadyMember"
    assert r.json["message"] == "Question already exists in the template"

    q2 = _question(client, "Any blockers?")
    r = client.delete(f"/v1/templates/{template['id']}/questions", json={"question": q2})
    assert r.status_code == 400
    assert r.json["kind"] == "NotMember"
    assert r.json["message"] == "Question does not exist in the template"

    r = client.delete(f"/v1/templates/{template['id']}/questions", json={"question": "0" * 24})
    assert r.status_code == 400
    assert r.json["message"] == "Question not found"

    r = client.post(f"/v1/templates/{'0' * 24}/questions", json={"question": q1})
    assert r.status_code == 404
    assert r.json["message"] == "Template not found"


def test_create_with_unknown_question_creates_nothing(client):
    r = client.post("/v1/templates", json={"name": "Broken", "questions": ["0" * 24]})
    assert r.status_code == 400
    assert r.json["kind"] == "InvalidReference"

    with session_scope(client.application) as s:
        assert s.query(Template).count() == 0


def test_hard_deleting_question_prunes_templates(client):
    q1 = _question(client, "How was your week?")
    q2 = _question(client, "Any blockers?")
    template = _template(client, questions=[q1, q2])

    r = client.delete(f"/v1/questions/{q1}", query_string={"hardDelete": "true"})
    assert r.status_code == 204

    r = client.get(f"/v1/templates/{template['id']}")
    assert r.json["questions"] == [q2]
    assert r.headers["ETag"] != '"1"'


def test_soft_deleted_question_stays_in_template(client):
    q1 = _question(client, "How was your week?")
    template = _template(client, questions=[q1])

    assert client.delete(f"/v1/questions/{q1}").status_code == 204

    r = client.get(f"/v1/templates/{template['id']}")
    assert r.json["questions"] == [q1]
    assert client.get(f"/v1/questions/{q1}").json["status"] == "Invalid"


def test_template_update_and_delete(client):
    template = _template(client)

    r = client.patch(f"/v1/templates/{template['id']}", json={"status": "Inactive"})
    assert r.status_code == 200
    assert r.json["status"] == "Inactive"
    assert r.json["name"] == "Weekly check-in"

    r = client.patch(f"/v1/templates/{template['id']}", json={"status": "Invalid"})
    assert r.status_code == 400

    r = client.get("/v1/templates", query_string={"status": "Inactive"})
    assert r.json["totalResults"] == 1

    assert client.delete(f"/v1/templates/{template['id']}", query_string={"hardDelete": "true"}).status_code == 204
    assert client.get(f"/v1/templates/{template['id']}").status_code == 404
