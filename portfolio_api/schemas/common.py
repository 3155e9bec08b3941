"""Common Marshmallow schemas shared across resources."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, validate


class PaginationQuerySchema(Schema):
    """Validate ``page``/``limit``/``sortBy``/``sortOrder`` query parameters.

    The loaded mapping carries ``page``, ``limit`` and ``sort`` where ``sort``
    is a list of public sort tokens (``["-createdAt"]``).
    """

    class Meta:
        unknown = EXCLUDE

    def __init__(
        self,
        *,
        sortable: Iterable[str] | None = None,
        default_sort: str = "createdAt",
        default_limit: int = 10,
        max_limit: int = 100,
        **kwargs: Any,
    ) -> None:
        self._sortable = set(sortable) if sortable is not None else None
        self._default_sort = default_sort
        self._default_limit = default_limit
        self._max_limit = max_limit
        super().__init__(**kwargs)

    page = fields.Integer(load_default=1, validate=validate.Range(min=1))
    limit = fields.Integer(validate=validate.Range(min=1))
    sort_by = fields.String(data_key="sortBy", load_default=None)
    sort_order = fields.String(
        data_key="sortOrder",
        load_default="desc",
        validate=validate.OneOf(["asc", "desc"]),
    )

    @post_load
    def to_pagination(self, data: dict[str, Any], **_: Any) -> dict[str, Any]:
        limit = data.get("limit", self._default_limit)
        if limit > self._max_limit:
            raise ValidationError(f"Must be at most {self._max_limit}.", "limit")

        sort_by = data.pop("sort_by", None) or self._default_sort
        if self._sortable is not None and sort_by not in self._sortable:
            raise ValidationError(f"Must be one of: {', '.join(sorted(self._sortable))}.", "sortBy")
        sort_order = data.pop("sort_order", "desc")

        data["limit"] = limit
        data["sort"] = [f"-{sort_by}" if sort_order == "desc" else sort_by]
        return data


class PaginationMetaSchema(Schema):
    """Metadata block for paginated responses."""

    total_items = fields.Integer(data_key="totalItems", required=True)
    item_count = fields.Integer(data_key="itemCount", required=True)
    items_per_page = fields.Integer(data_key="itemsPerPage", required=True)
    total_pages = fields.Integer(data_key="totalPages", required=True)
    current_page = fields.Integer(data_key="currentPage", required=True)
