"""Generic repository base for SQLAlchemy 2.x aggregates.

Repositories are persistence-only: they build queries, stage changes and
flush, but never commit or roll back. Units of work own the transaction.

Reads go through :meth:`BaseRepository._select`, so a repository that hides
rows (soft deletion) does it in one place. Sorting, equality filters and
updates are whitelisted per repository.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import ColumnElement, Select, func, select
from sqlalchemy.orm import InstrumentedAttribute, Session

E = TypeVar("E")  # SQLAlchemy mapped entity type


@dataclass(slots=True)
class Pagination:
    """Pagination input parameters.

    :param page: 1-based page number.
    :type page: int
    :param limit: Page size.
    :type limit: int
    :param sort: Public sort tokens (e.g., ``["-createdAt", "email"]``).
    :type sort: list[str]
    """

    page: int
    limit: int
    sort: list[str]


@dataclass(slots=True)
class Page(Generic[E]):
    """One page of entities plus the total row count of the query."""

    items: Sequence[E]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        """Number of pages needed to show ``total`` items (0 when empty)."""
        return -(-self.total // self.limit) if self.limit > 0 else 0


class BaseRepository(Generic[E]):
    """Persistence-only repository for a single aggregate.

    Subclasses set ``model`` and may override the whitelist hooks
    (``_sortable_fields``, ``_filterable_fields``, ``_updatable_fields``),
    ``_default_scope`` to hide rows and ``_remove`` to soft-delete.

    :param session: Session shared across the Unit of Work scope.
    :type session: :class:`sqlalchemy.orm.Session`
    """

    model: type[E]

    def __init__(self, session: Session) -> None:
        self.session = session

    # ------------------------------ Hooks ------------------------------------

    def _default_scope(self, stmt: Select[Any]) -> Select[Any]:
        return stmt

    def _remove(self, instance: E) -> None:
        self.session.delete(instance)

    def _sortable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]]:
        """Public sort key -> model attribute."""
        return {}

    def _filterable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]]:
        """Public equality-filter key -> model attribute."""
        return {}

    def _updatable_fields(self) -> set[str]:
        return set()

    # ------------------------------ Internals --------------------------------

    def _select(self) -> Select[Any]:
        return self._default_scope(select(self.model))

    def _order_by(self, stmt: Select[Any], tokens: Iterable[str]) -> Select[Any]:
        """Apply whitelisted ``ORDER BY`` clauses; ``-field`` sorts descending.

        Unknown tokens are ignored. The primary key is always the last,
        ascending key so pages are stable.
        """
        sortable = self._sortable_fields()
        orders: list[Any] = []
        for token in tokens:
            descending = token.startswith("-")
            column = sortable.get(token.lstrip("-").strip())
            if column is not None:
                orders.append(column.desc() if descending else column.asc())
        return stmt.order_by(*orders, self.model.id.asc())

    # --------------------------------- CRUD ----------------------------------

    def add(self, instance: E) -> E:
        """Stage a new entity and flush to materialize its primary key."""
        self.session.add(instance)
        self.flush()
        return instance

    def get(self, entity_id: Any) -> E | None:
        """Retrieve an in-scope entity by primary key, or ``None``."""
        stmt = self._select().where(self.model.id == entity_id)
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def get_for_update(self, entity_id: Any) -> E | None:
        """Like :meth:`get`, with ``FOR UPDATE`` where the dialect supports it."""
        stmt = self._select().where(self.model.id == entity_id).with_for_update()
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def delete(self, instance: E) -> None:
        self._remove(instance)
        self.flush()

    def flush(self) -> None:
        self.session.flush()

    def assign_updates(self, instance: E, fields: Mapping[str, Any]) -> E:
        """Assign whitelisted fields and flush.

        Assignment goes through ``setattr`` so model ``@validates`` hooks run.

        :param instance: Entity to mutate.
        :type instance: E
        :param fields: Attribute name -> new value.
        :type fields: Mapping[str, Any]
        :returns: The mutated instance.
        :rtype: E
        :raises ValueError: If a key is not in ``_updatable_fields``.
        """
        unknown = sorted(set(fields) - self._updatable_fields())
        if unknown:
            raise ValueError(f"Unknown or non-updatable fields: {unknown}")
        for key, value in fields.items():
            setattr(instance, key, value)
        self.flush()
        return instance

    def update(self, instance: E, **fields: Any) -> E:
        return self.assign_updates(instance, fields)

    # ------------------------------- Listing ---------------------------------

    def paginate(
        self,
        pagination: Pagination,
        *,
        filters: Mapping[str, Any] | None = None,
        criteria: Iterable[ColumnElement[bool]] = (),
    ) -> Page[E]:
        """Return one page of in-scope entities with the query's total.

        :param pagination: Page, limit and public sort tokens.
        :type pagination: Pagination
        :param filters: Equality filters on ``_filterable_fields``; ``None``
            values and unknown keys are skipped.
        :type filters: Mapping[str, Any] | None
        :param criteria: Extra SQL criteria built by the concrete repository.
        :type criteria: Iterable[ColumnElement[bool]]
        :rtype: Page[E]
        """
        stmt = self._select()
        filterable = self._filterable_fields()
        for key, value in (filters or {}).items():
            column = filterable.get(key)
            if column is not None and value is not None:
                stmt = stmt.where(column == value)
        for criterion in criteria:
            stmt = stmt.where(criterion)

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = int(self.session.execute(count_stmt).scalar_one())

        page = max(int(pagination.page), 1)
        limit = max(int(pagination.limit), 1)
        ordered = self._order_by(stmt, pagination.sort)
        items = self.session.execute(ordered.limit(limit).offset((page - 1) * limit))
        return Page(items=list(items.scalars().all()), total=total, page=page, limit=limit)
