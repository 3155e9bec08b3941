"""Unit tests for pagination query parsing."""

from __future__ import annotations

import pytest
from marshmallow import ValidationError

from portfolio_api.schemas.common import PaginationQuerySchema
from portfolio_api.schemas.user import USER_SORT_FIELDS


def test_defaults():
    data = PaginationQuerySchema().load({})

    assert data == {"page": 1, "limit": 10, "sort": ["-createdAt"]}


def test_ascending_sort_and_unknown_params_ignored():
    data = PaginationQuerySchema(sortable=USER_SORT_FIELDS).load(
        {"page": "2", "limit": "25", "sortBy": "fullName", "sortOrder": "asc", "email": "x"}
    )

    assert data == {"page": 2, "limit": 25, "sort": ["fullName"]}


@pytest.mark.parametrize(
    "args",
    [
        {"page": "0"},
        {"limit": "0"},
        {"limit": "101"},
        {"sortOrder": "sideways"},
        {"sortBy": "password_hash"},
    ],
)
def test_rejects_invalid_values(args):
    with pytest.raises(ValidationError):
        PaginationQuerySchema(sortable=USER_SORT_FIELDS).load(args)
