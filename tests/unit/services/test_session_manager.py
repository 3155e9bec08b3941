"""Unit tests for the session lifecycle service wired to real adapters."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import fakeredis
import pytest
from freezegun import freeze_time

from portfolio_api.infra.jwt.pyjwt_codec import PyJWTCodec
from portfolio_api.infra.redis.redis_cache import RedisCache
from portfolio_api.infra.sqlalchemy.credential_store import SQLAlchemyCredentialStore
from portfolio_api.services._shared.errors import (
    ConflictError,
    InternalFailureError,
    NotFoundError,
    TokenSigningError,
    UnauthorizedError,
)
from portfolio_api.services.auth.dto import (
    AuthTokenConfig,
    ChangePasswordIn,
    LoginIn,
    LogoutIn,
    OAuthProfileIn,
    RefreshIn,
    RegisterIn,
)
from portfolio_api.services.auth.service import SessionManager, blacklist_key, watermark_key
from tests.factories.user import DEFAULT_PASSWORD, UserFactory

TOKEN_CFG = AuthTokenConfig(
    access_expires=timedelta(minutes=15),
    refresh_expires=timedelta(days=7),
)


# ------------------------------ Fixtures ---------------------------------- #
@pytest.fixture()
def codec(app) -> PyJWTCodec:
    return PyJWTCodec(app.config["JWT_ACCESS_SECRET"], app.config["JWT_REFRESH_SECRET"])


@pytest.fixture()
def manager(codec, redis_client, session) -> SessionManager:
    """Build a SessionManager over fakeredis and the transactional session."""
    return SessionManager(
        codec=codec,
        cache=RedisCache(redis_client),
        credentials=SQLAlchemyCredentialStore(),
        token_cfg=TOKEN_CFG,
    )


@pytest.fixture()
def broken_manager(codec, session) -> SessionManager:
    """SessionManager whose cache is unreachable."""
    server = fakeredis.FakeServer()
    server.connected = False
    return SessionManager(
        codec=codec,
        cache=RedisCache(fakeredis.FakeRedis(server=server, decode_responses=True)),
        credentials=SQLAlchemyCredentialStore(),
        token_cfg=TOKEN_CFG,
    )


class RefreshSigningFailsCodec(PyJWTCodec):
    """Codec that cannot sign refresh tokens."""

    def sign(self, claims, *, kind, ttl):
        if kind == "refresh":
            raise TokenSigningError("refresh secret unavailable")
        return super().sign(claims, kind=kind, ttl=ttl)


def _login(manager: SessionManager, email: str, password: str = DEFAULT_PASSWORD):
    identity = manager.authenticate(LoginIn(email=email, password=password))
    return manager.login(identity)


# ------------------------------ Register ---------------------------------- #
class TestRegister:
    def test_creates_user_identity(self, manager):
        out = manager.register(
            RegisterIn(email="new@example.com", password="Secret123", full_name="New Person")
        )

        assert out.id is not None
        assert out.email == "new@example.com"
        assert out.roles == ("user",)
        assert not hasattr(out, "password_hash")

    def test_duplicate_email_conflicts(self, manager):
        UserFactory(email="taken@example.com")

        with pytest.raises(ConflictError):
            manager.register(
                RegisterIn(email="taken@example.com", password="Secret123", full_name="Other")
            )


# ------------------------------ Login ------------------------------------- #
class TestLogin:
    def test_issues_pair_with_identity_claims(self, manager, codec):
        user = UserFactory(full_name="Ada Lovelace")

        pair = _login(manager, user.email)

        access = codec.verify(pair.access_token, kind="access")
        refresh = codec.verify(pair.refresh_token, kind="refresh")
        assert access["sub"] == str(user.id)
        assert access["fullName"] == "Ada Lovelace"
        assert access["roles"] == ["user"]
        assert refresh["sub"] == str(user.id)
        assert "roles" not in refresh
        assert access["jti"] != refresh["jti"]

    @pytest.mark.parametrize(
        ("email", "password"),
        [("ghost@example.com", DEFAULT_PASSWORD), ("known@example.com", "wrong-password")],
    )
    def test_bad_credentials_are_unauthorized(self, manager, email, password):
        UserFactory(email="known@example.com")

        with pytest.raises(UnauthorizedError):
            manager.authenticate(LoginIn(email=email, password=password))

    def test_deleted_user_cannot_log_in(self, manager):
        user = UserFactory(deleted_at=datetime.now(UTC))

        with pytest.raises(UnauthorizedError):
            manager.authenticate(LoginIn(email=user.email, password=DEFAULT_PASSWORD))


# ------------------------------ Token issuance ---------------------------- #
class TestGenerateTokens:
    def test_signing_failure_issues_nothing(self, app, redis_client, session):
        user = UserFactory()
        manager = SessionManager(
            codec=RefreshSigningFailsCodec(
                app.config["JWT_ACCESS_SECRET"], app.config["JWT_REFRESH_SECRET"]
            ),
            cache=RedisCache(redis_client),
            credentials=SQLAlchemyCredentialStore(),
            token_cfg=TOKEN_CFG,
        )

        with pytest.raises(InternalFailureError):
            manager.generate_tokens(user.id, user.full_name, ["user"])
        with pytest.raises(InternalFailureError):
            _login(manager, user.email)
        assert redis_client.keys("*") == []


# ------------------------------ Refresh ----------------------------------- #
class TestRefresh:
    def test_rotation_consumes_presented_token(self, manager, codec, redis_client):
        user = UserFactory()
        first = _login(manager, user.email)

        second = manager.refresh(RefreshIn(refresh_token=first.refresh_token))

        assert second.refresh_token != first.refresh_token
        assert manager.validate_token(second.access_token) is True
        assert manager.validate_token(first.refresh_token) is False
        jti = codec.decode(first.refresh_token)["jti"]
        assert redis_client.get(blacklist_key(jti)) == str(user.id)

    def test_replay_is_rejected(self, manager):
        user = UserFactory()
        pair = _login(manager, user.email)
        manager.refresh(RefreshIn(refresh_token=pair.refresh_token))

        with pytest.raises(UnauthorizedError):
            manager.refresh(RefreshIn(refresh_token=pair.refresh_token))

    def test_rotated_token_can_refresh_again(self, manager):
        user = UserFactory()
        pair = _login(manager, user.email)
        rotated = manager.refresh(RefreshIn(refresh_token=pair.refresh_token))

        again = manager.refresh(RefreshIn(refresh_token=rotated.refresh_token))

        assert manager.validate_token(again.refresh_token) is True

    def test_access_token_is_not_a_refresh_token(self, manager):
        user = UserFactory()
        pair = _login(manager, user.email)

        with pytest.raises(UnauthorizedError):
            manager.refresh(RefreshIn(refresh_token=pair.access_token))

    def test_garbage_is_unauthorized(self, manager):
        with pytest.raises(UnauthorizedError):
            manager.refresh(RefreshIn(refresh_token="not-a-jwt"))

    def test_expired_refresh_token_is_unauthorized(self, manager):
        user = UserFactory()
        with freeze_time("2025-01-01 12:00:00"):
            pair = _login(manager, user.email)

        with freeze_time("2025-01-09 12:00:00"), pytest.raises(UnauthorizedError):
            manager.refresh(RefreshIn(refresh_token=pair.refresh_token))

    def test_cache_outage_is_internal_failure(self, manager, broken_manager):
        user = UserFactory()
        pair = _login(manager, user.email)

        with pytest.raises(InternalFailureError):
            broken_manager.refresh(RefreshIn(refresh_token=pair.refresh_token))


# ------------------------------ Logout ------------------------------------ #
class TestLogout:
    def test_blacklists_both_tokens(self, manager):
        user = UserFactory()
        pair = _login(manager, user.email)

        manager.logout(
            LogoutIn(access_token=pair.access_token, refresh_token=pair.refresh_token)
        )

        assert manager.validate_token(pair.access_token) is False
        assert manager.validate_token(pair.refresh_token) is False
        with pytest.raises(UnauthorizedError):
            manager.refresh(RefreshIn(refresh_token=pair.refresh_token))

    def test_blacklist_ttl_tracks_token_lifetime(self, manager, codec, redis_client):
        user = UserFactory()
        pair = _login(manager, user.email)

        manager.logout(LogoutIn(access_token=pair.access_token))

        jti = codec.decode(pair.access_token)["jti"]
        assert 0 < redis_client.ttl(blacklist_key(jti)) <= TOKEN_CFG.access_seconds

    def test_expired_tokens_are_still_blacklisted(self, manager, codec, redis_client):
        user = UserFactory()
        with freeze_time("2025-01-01 12:00:00") as frozen:
            pair = _login(manager, user.email)
            frozen.tick(TOKEN_CFG.refresh_expires + timedelta(seconds=1))

            manager.logout(
                LogoutIn(access_token=pair.access_token, refresh_token=pair.refresh_token)
            )

            for token in (pair.access_token, pair.refresh_token):
                key = blacklist_key(codec.decode(token)["jti"])
                assert redis_client.exists(key) == 1
                assert redis_client.ttl(key) == 1

    def test_is_best_effort(self, manager, broken_manager):
        user = UserFactory()
        pair = _login(manager, user.email)

        manager.logout(LogoutIn(access_token="garbage", refresh_token=None))
        broken_manager.logout(
            LogoutIn(access_token=pair.access_token, refresh_token=pair.refresh_token)
        )


# ------------------------------ Change password --------------------------- #
class TestChangePassword:
    def test_retires_tokens_issued_before_change(self, manager, redis_client):
        user = UserFactory()
        with freeze_time("2025-01-01 12:00:00") as frozen:
            old = _login(manager, user.email)
            frozen.tick(timedelta(seconds=2))

            manager.change_password(
                ChangePasswordIn(
                    user_id=user.id, current_password=DEFAULT_PASSWORD, new_password="N3wSecret!"
                )
            )

            assert manager.validate_token(old.access_token) is False
            assert manager.validate_token(old.refresh_token) is False
            with pytest.raises(UnauthorizedError):
                manager.refresh(RefreshIn(refresh_token=old.refresh_token))

            fresh = _login(manager, user.email, "N3wSecret!")
            assert manager.validate_token(fresh.access_token) is True
            assert manager.validate_token(fresh.refresh_token) is True
            assert redis_client.get(watermark_key(user.id)) is not None
            assert redis_client.get(watermark_key(user.id, "refresh")) is not None

    def test_refresh_token_stays_retired_after_access_watermark_expires(
        self, manager, redis_client
    ):
        user = UserFactory()
        with freeze_time("2025-01-01 12:00:00") as frozen:
            old = _login(manager, user.email)
            frozen.tick(timedelta(seconds=5))
            manager.change_password(
                ChangePasswordIn(
                    user_id=user.id, current_password=DEFAULT_PASSWORD, new_password="N3wSecret!"
                )
            )
            frozen.tick(timedelta(minutes=16))

            assert redis_client.get(watermark_key(user.id)) is None
            assert manager.validate_token(old.refresh_token) is False
            with pytest.raises(UnauthorizedError):
                manager.refresh(RefreshIn(refresh_token=old.refresh_token))

    def test_token_from_earlier_in_the_same_second_is_retired(self, manager):
        user = UserFactory()
        with freeze_time("2025-01-01 12:00:00.100") as frozen:
            old = _login(manager, user.email)
            frozen.tick(timedelta(milliseconds=700))

            manager.change_password(
                ChangePasswordIn(
                    user_id=user.id, current_password=DEFAULT_PASSWORD, new_password="N3wSecret!"
                )
            )

            assert manager.validate_token(old.access_token) is False
            assert manager.validate_token(old.refresh_token) is False
            fresh = _login(manager, user.email, "N3wSecret!")
            assert manager.validate_token(fresh.access_token) is True

    def test_old_password_stops_working(self, manager):
        user = UserFactory()

        manager.change_password(
            ChangePasswordIn(
                user_id=user.id, current_password=DEFAULT_PASSWORD, new_password="N3wSecret!"
            )
        )

        with pytest.raises(UnauthorizedError):
            manager.authenticate(LoginIn(email=user.email, password=DEFAULT_PASSWORD))

    def test_wrong_current_password(self, manager, redis_client):
        user = UserFactory()

        with pytest.raises(UnauthorizedError):
            manager.change_password(
                ChangePasswordIn(user_id=user.id, current_password="nope", new_password="x1234567")
            )
        assert redis_client.get(watermark_key(user.id)) is None
        assert redis_client.get(watermark_key(user.id, "refresh")) is None

    def test_unknown_user(self, manager):
        with pytest.raises(NotFoundError):
            manager.change_password(
                ChangePasswordIn(user_id=987654, current_password="a", new_password="b")
            )


# ------------------------------ Validation -------------------------------- #
class TestValidateToken:
    def test_is_side_effect_free(self, manager, redis_client):
        user = UserFactory()
        pair = _login(manager, user.email)
        before = sorted(redis_client.keys("*"))

        assert manager.validate_token(pair.access_token) is True
        assert manager.validate_token(pair.access_token) is True
        assert sorted(redis_client.keys("*")) == before

    def test_rejects_garbage(self, manager):
        assert manager.validate_token("a.b.c") is False

    def test_unreadable_watermark_fails_closed(self, manager, codec, redis_client):
        user = UserFactory()
        pair = _login(manager, user.email)
        redis_client.set(watermark_key(user.id), "not-a-number")

        assert manager.validate_claims(codec.verify(pair.access_token, kind="access")) is False

    def test_cache_outage_is_internal_failure(self, manager, broken_manager):
        user = UserFactory()
        pair = _login(manager, user.email)

        with pytest.raises(InternalFailureError):
            broken_manager.validate_token(pair.access_token)


# ------------------------------ OAuth ------------------------------------- #
class TestOAuthLogin:
    def test_creates_identity_once(self, manager, codec):
        profile = OAuthProfileIn(
            provider="google", external_id="g-1", email="oa@example.com", full_name="O Auth"
        )

        first = manager.oauth_login(profile)
        second = manager.oauth_login(profile)

        assert (
            codec.decode(first.access_token)["sub"] == codec.decode(second.access_token)["sub"]
        )

    def test_links_existing_email(self, manager, codec, session):
        user = UserFactory(email="link@example.com")

        pair = manager.oauth_login(
            OAuthProfileIn(
                provider="facebook",
                external_id="fb-9",
                email="link@example.com",
                full_name="Linked",
                avatar="https://img.example.com/a.png",
            )
        )

        assert codec.decode(pair.access_token)["sub"] == str(user.id)
        session.refresh(user)
        assert user.facebook_id == "fb-9"
        assert user.avatar == "https://img.example.com/a.png"
