"""
Scholarhub API
Blueprint registry and request-shape helpers.

Input validation happens here, at the HTTP boundary, before any service is
called. Helpers raise ``ValidationError``, which the app-wide handlers turn
into a 400 response with field details.
"""

from flask import request

from scholarhub.core.exceptions import ValidationError
from scholarhub.services.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, MAX_LIMIT, PageRequest
from scholarhub.utils.helpers import parse_datetime

SORT_ORDERS = ("asc", "desc")
# Largest OFFSET a 64-bit database integer holds
MAX_OFFSET = 2 ** 63 - 1


def _positive_int(name, default):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (ValueError, TypeError):
        raise ValidationError(f"{name} must be an integer", details={name: raw})
    if value < 1:
        raise ValidationError(f"{name} must be a positive integer", details={name: raw})
    return value


def parse_pagination():
    """PageRequest from ?page&limit. Non-positive values, limit > 100 and out-of-range pages are rejected."""
    page = _positive_int("page", DEFAULT_PAGE)
    limit = _positive_int("limit", DEFAULT_LIMIT)
    if limit > MAX_LIMIT:
        raise ValidationError(f"limit must be <= {MAX_LIMIT}", details={"limit": f"max {MAX_LIMIT}"})
    if (page - 1) * limit > MAX_OFFSET:
        raise ValidationError("page is out of range", details={"page": "out of range"})
    return PageRequest(page=page, limit=limit)


def parse_sort():
    """(sortBy, sortOrder) from the query string. sortOrder must be asc or desc."""
    sort_by = request.args.get("sortBy") or None
    sort_order = (request.args.get("sortOrder") or "desc").lower()
    if sort_order not in SORT_ORDERS:
        raise ValidationError("sortOrder must be 'asc' or 'desc'", details={"sortOrder": sort_order})
    return sort_by, sort_order


def query_choice(name, valid):
    """Optional query-string filter restricted to ``valid`` values."""
    value = request.args.get(name) or None
    if value is not None and value not in valid:
        raise ValidationError(
            f"{name} must be one of: {', '.join(sorted(valid))}", details={name: value},
        )
    return value


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def required_str(data, key, max_len=None):
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{key} is required", details={key: "required"})
    value = value.strip()
    if max_len and len(value) > max_len:
        raise ValidationError(f"{key} must be ≤ {max_len} characters", details={key: f"max {max_len}"})
    return value


def optional_str(data, key, max_len=None):
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string", details={key: "string expected"})
    if max_len and len(value) > max_len:
        raise ValidationError(f"{key} must be ≤ {max_len} characters", details={key: f"max {max_len}"})
    return value


def choice(data, key, valid, required=True, default=None):
    value = data.get(key)
    if value in (None, ""):
        if required:
            raise ValidationError(f"{key} is required", details={key: "required"})
        return default
    if value not in valid:
        raise ValidationError(
            f"{key} must be one of: {', '.join(sorted(valid))}", details={key: value},
        )
    return value


def date_field(data, key, required=True):
    value = data.get(key)
    if value in (None, ""):
        if required:
            raise ValidationError(f"{key} is required", details={key: "required"})
        return None
    try:
        return parse_datetime(value)
    except ValueError as e:
        raise ValidationError(str(e), details={key: "invalid date"})
