"""Resolve an OAuth provider access token into a profile (requests)."""

from __future__ import annotations

from typing import Any

import requests

from portfolio_api.services._shared.errors import (
    InternalFailureError,
    ServiceError,
    UnauthorizedError,
)
from portfolio_api.services.auth.dto import OAuthProfileIn

SUPPORTED_PROVIDERS = ("google", "facebook")


class OAuthProfileClient:
    """
    Look up the user behind a provider access token.

    The client obtained the token through the provider's own sign-in flow;
    this class only calls the provider's profile endpoint with it.

    :param google_url: Google OpenID ``userinfo`` endpoint.
    :param facebook_url: Graph API ``/me`` endpoint.
    :param timeout: Per-request timeout in seconds.
    :param session: Optional :class:`requests.Session` (connection reuse).
    """

    def __init__(
        self,
        *,
        google_url: str,
        facebook_url: str,
        timeout: float = 5.0,
        session: requests.Session | None = None,
    ) -> None:
        self.google_url = google_url
        self.facebook_url = facebook_url
        self.timeout = timeout
        self.http = session or requests.Session()

    def fetch_profile(self, provider: str, access_token: str) -> OAuthProfileIn:
        """
        :raises ServiceError: For an unsupported provider.
        :raises UnauthorizedError: If the provider rejects the token.
        :raises InternalFailureError: If the provider cannot be reached.
        """
        if provider == "google":
            data = self._get(
                self.google_url, headers={"Authorization": f"Bearer {access_token}"}
            )
            return _google_profile(data)
        if provider == "facebook":
            data = self._get(
                self.facebook_url,
                params={"fields": "id,name,email,picture", "access_token": access_token},
            )
            return _facebook_profile(data)
        raise ServiceError(f"Unsupported OAuth provider: {provider}")

    def _get(self, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            resp = self.http.get(url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise InternalFailureError("OAuth provider unreachable") from exc

        if resp.status_code in (400, 401, 403):
            raise UnauthorizedError("OAuth token rejected by provider")
        try:
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise InternalFailureError("OAuth provider returned an invalid response") from exc
        if not isinstance(data, dict):
            raise InternalFailureError("OAuth provider returned an invalid response")
        return data


def _google_profile(data: dict[str, Any]) -> OAuthProfileIn:
    external_id = data.get("sub") or data.get("id")
    if not external_id:
        raise UnauthorizedError("OAuth profile has no subject")
    email = data.get("email") if data.get("email_verified", True) else None
    return OAuthProfileIn(
        provider="google",
        external_id=str(external_id),
        email=email,
        full_name=data.get("name") or email or "Google user",
        avatar=data.get("picture"),
    )


def _facebook_profile(data: dict[str, Any]) -> OAuthProfileIn:
    external_id = data.get("id")
    if not external_id:
        raise UnauthorizedError("OAuth profile has no subject")
    picture = data.get("picture")
    avatar = None
    if isinstance(picture, dict):
        avatar = (picture.get("data") or {}).get("url")
    return OAuthProfileIn(
        provider="facebook",
        external_id=str(external_id),
        email=data.get("email"),
        full_name=data.get("name") or data.get("email") or "Facebook user",
        avatar=avatar,
    )
