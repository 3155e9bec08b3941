"""Role-based authorization gate."""

from __future__ import annotations

from collections.abc import Iterable

from portfolio_api.services._shared.errors import ForbiddenError


def authorize(required: Iterable[str], actual: Iterable[str] | None) -> None:
    """
    Check that the caller holds at least one of the required roles.

    An empty ``required`` set means the route only needs authentication.

    :param required: Roles attached to the route.
    :type required: Iterable[str]
    :param actual: Roles carried by the caller's access token.
    :type actual: Iterable[str] | None
    :raises ForbiddenError: If the sets do not intersect.
    """
    needed = {str(r) for r in required}
    if not needed:
        return
    held = {str(r) for r in (actual or ())}
    if needed.isdisjoint(held):
        raise ForbiddenError("Insufficient role")
