"""
Small helpers shared by the JSON blueprints.
"""
from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from flask import g, jsonify, make_response, request

from app.teamforms.errors import ValidationFailure
from app.teamforms.models import User
from app.teamforms.pagination import PageOptions
from app.teamforms.utils import parse_bool, parse_etag, pick

PAGE_OPTION_KEYS = ("sortBy", "limit", "page")


def current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationFailure("Request body must be a JSON object.")
    return data


def require_valid(errors: list[str]) -> None:
    if errors:
        raise ValidationFailure(errors)


def if_match() -> int | None:
    return parse_etag(request.headers.get("If-Match"))


def hard_delete_flag() -> bool:
    raw = request.args.get("hardDelete")
    if raw is None:
        return False
    flag = parse_bool(raw)
    if flag is None:
        raise ValidationFailure("hardDelete must be true or false.")
    return flag


def list_args(filter_keys: Iterable[str], bool_keys: Iterable[str] = ()) -> tuple[dict[str, Any], PageOptions]:
    """Split query-string args into exact-match filters and paging options."""
    filters = pick(request.args, filter_keys)
    for key in bool_keys:
        if key in filters:
            value = parse_bool(filters[key])
            if value is None:
                raise ValidationFailure(f"{key} must be true or false.")
            filters[key] = value
    return filters, PageOptions.from_mapping(pick(request.args, PAGE_OPTION_KEYS))


def entity_response(entity: Any, status: int = 200):
    resp = make_response(jsonify(entity.to_dict()), status)
    resp.headers["ETag"] = f'"{entity.version}"'
    return resp


def no_content():
    return "", 204
