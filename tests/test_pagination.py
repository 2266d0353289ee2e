import os
from datetime import datetime, timedelta

import pytest

from app.teamforms import create_app
from app.teamforms.db import session_scope
from app.teamforms.models import Base
from app.teamforms.modules.questions.models import QuestionType
from app.teamforms.modules.questions.service import create_question_type, query_question_types
from app.teamforms.pagination import PageOptions, parse_sort
from app.teamforms.utils import new_id, parse_etag


class TestPageOptions:
    def test_defaults(self):
        opts = PageOptions.from_mapping(None)
        assert opts == PageOptions(sort_by=None, limit=10, page=1)

    def test_bad_values_fall_back(self):
        opts = PageOptions.from_mapping({"limit": "0", "page": "abc", "sortBy": "  "})
        assert opts.limit == 10
        assert opts.page == 1
        assert opts.sort_by is None

    def test_parses_strings(self):
        opts = PageOptions.from_mapping({"limit": "25", "page": "3", "sortBy": "name:desc"})
        assert (opts.limit, opts.page, opts.sort_by) == (25, 3, "name:desc")


class TestParseSort:
    SORTABLE = {"name": "name", "createdAt": "created_at"}

    def test_multiple_fields(self):
        assert parse_sort("name:desc,createdAt", self.SORTABLE) == [("name", True), ("created_at", False)]

    def test_unknown_fields_dropped(self):
        assert parse_sort("password:asc,name:sideways", self.SORTABLE) == [("name", False)]

    def test_empty(self):
        assert parse_sort("", self.SORTABLE) == []
        assert parse_sort(None, self.SORTABLE) == []


class TestIdsAndTags:
    def test_ids_are_unique_and_ordered(self):
        ids = [new_id() for _ in range(50)]
        assert all(len(i) == 24 for i in ids)
        assert len(set(ids)) == 50
        assert ids == sorted(ids)

    @pytest.mark.skipif(not hasattr(os, "fork"), reason="needs os.fork")
    def test_forked_process_gets_its_own_ids(self):
        parent_first = new_id()
        read_fd, write_fd = os.pipe()
        pid = os.fork()
        if pid == 0:
            os.close(read_fd)
            os.write(write_fd, new_id().encode())
            os._exit(0)
        os.close(write_fd)
        child = os.read(read_fd, 64).decode()
        os.close(read_fd)
        os.waitpid(pid, 0)
        parent = new_id()

        assert len(child) == 24
        assert child != parent
        # nonce bytes differ, so same-second counters can never collide
        assert child[8:18] != parent[8:18]
        assert parent[8:18] == parent_first[8:18]

    def test_parse_etag(self):
        assert parse_etag('"3"') == 3
        assert parse_etag('W/"4"') == 4
        assert parse_etag("5") == 5
        assert parse_etag(None) is None
        assert parse_etag("*") is None


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])

    with session_scope(app) as s:
        for i in range(23):
            create_question_type(s, {"name": f"type-{i:02d}", "values": {}, "status": "Inactive" if i % 4 == 0 else "Active"})
    return app


@pytest.mark.parametrize("limit", [1, 5, 10, 23, 50])
def test_pages_partition_results(app, limit):
    seen = []
    with session_scope(app) as s:
        first = query_question_types(s, {}, {"limit": limit})
        assert first["totalResults"] == 23
        assert first["totalPages"] == -(-23 // limit)
        for page in range(1, first["totalPages"] + 1):
            result = query_question_types(s, {}, {"limit": limit, "page": page})
            assert result["page"] == page
            seen.extend(row["id"] for row in result["results"])

    assert len(seen) == 23
    assert len(set(seen)) == 23


def test_default_order_is_creation_order(app):
    with session_scope(app) as s:
        result = query_question_types(s, {}, {"limit": 50})
    assert [row["name"] for row in result["results"]] == [f"type-{i:02d}" for i in range(23)]


def test_page_past_the_end_is_empty(app):
    with session_scope(app) as s:
        result = query_question_types(s, {}, {"limit": 10, "page": 4})
    assert result["results"] == []
    assert result["totalPages"] == 3
    assert result["totalResults"] == 23


def test_sort_descending(app):
    with session_scope(app) as s:
        result = query_question_types(s, {}, {"limit": 3, "sortBy": "name:desc"})
    assert [row["name"] for row in result["results"]] == ["type-22", "type-21", "type-20"]


def test_filters_are_exact_and_unknown_keys_ignored(app):
    with session_scope(app) as s:
        result = query_question_types(s, {"status": "Inactive", "values": "x"}, {"limit": 50})
        assert result["totalResults"] == 6
        assert {row["status"] for row in result["results"]} == {"Inactive"}

        result = query_question_types(s, {"name": "type-0"}, None)
        assert result["totalResults"] == 0
        assert result["totalPages"] == 0


def test_empty_collection(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'empty.db'}")
    monkeypatch.setenv("ENV", "test")
    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])

    with session_scope(app) as s:
        assert s.query(QuestionType).count() == 0
        result = query_question_types(s, {}, None)
    assert result == {"results": [], "page": 1, "limit": 10, "totalPages": 0, "totalResults": 0}


def test_default_order_follows_creation_time_not_id(app):
    # Ids minted by another worker can sort before older rows
    now = datetime.utcnow()
    with session_scope(app) as s:
        s.add(QuestionType(id="f" * 24, name="older", values={}, created_at=now - timedelta(minutes=5)))
        s.add(QuestionType(id="0" * 24, name="newer", values={}, created_at=now + timedelta(minutes=5)))

    with session_scope(app) as s:
        names = [row["name"] for row in query_question_types(s, {}, {"limit": 50})["results"]]
    assert names[0] == "older"
    assert names[-1] == "newer"
