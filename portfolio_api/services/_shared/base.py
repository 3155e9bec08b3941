from __future__ import annotations

from collections.abc import Iterable

from portfolio_api.repositories.base import Pagination
from portfolio_api.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to open read-only and read-write units of work.
    * Offer shared validation helpers (pagination/sorting).
    * Keep services orchestration-only: no Flask request objects, no HTTP.

    Notes
    -----
    - Services never touch the global session; they go through a Unit of Work.
    - Errors are raised as :class:`~portfolio_api.services._shared.errors.ServiceError`
      subclasses and translated once at the HTTP boundary.
    """

    #: Upper bound applied to page sizes regardless of caller input
    MAX_PAGE_SIZE = 100

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(self, *, enforce_db_readonly: bool = True) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :param enforce_db_readonly: Apply ``SET TRANSACTION READ ONLY`` when supported.
        :type enforce_db_readonly: bool
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork(enforce_db_readonly=enforce_db_readonly)

    # ----------------------- Validation utilities ---------------------------

    def ensure_pagination(
        self, *, page: int, limit: int, sort: Iterable[str] | None = None
    ) -> Pagination:
        """
        Build a Pagination value object with basic clamping.

        :param page: 1-based page number.
        :type page: int
        :param limit: Page size, clamped to ``1..MAX_PAGE_SIZE``.
        :type limit: int
        :param sort: Sort tokens like ``["-createdAt", "email"]``.
        :type sort: Iterable[str] | None
        :rtype: Pagination
        """
        page = max(1, int(page))
        limit = min(max(1, int(limit)), self.MAX_PAGE_SIZE)
        return Pagination(page=page, limit=limit, sort=list(sort or []))
