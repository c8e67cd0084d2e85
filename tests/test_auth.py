"""
Tests for token handling, identity verification and role checks.
"""

from datetime import timedelta

import jwt
import pytest

from lorekeeper.auth import Identity, extract_bearer_token, hash_password, verify_password
from lorekeeper.core.errors import (
    ExpiredCredentials,
    InsufficientRole,
    InvalidCredentials,
    MalformedCredentials,
    MissingCredentials,
    RevokedCredentials,
)
from lorekeeper.core.models import Role

from tests.conftest import TEST_SECRET, bearer


# =============================================================================
# Bearer Extraction Tests
# =============================================================================


class TestExtractBearerToken:
    def test_valid_header(self):
        assert extract_bearer_token({"Authorization": "Bearer abc.def"}) == "abc.def"

    def test_header_name_is_case_insensitive(self):
        assert extract_bearer_token({"authorization": "Bearer abc"}) == "abc"

    def test_missing_header(self):
        with pytest.raises(MissingCredentials):
            extract_bearer_token({})

    @pytest.mark.parametrize("value", [
        "Bearer",
        "Bearer ",
        "bearer abc",
        "Basic abc",
        "Bearer  abc",
        "Bearer abc def",
    ])
    def test_malformed_header(self, value):
        with pytest.raises(MalformedCredentials):
            extract_bearer_token({"Authorization": value})


# =============================================================================
# IdentityVerifier Tests
# =============================================================================


class TestIdentityVerifier:
    def test_valid_token(self, verifier, user_token):
        identity = verifier.authenticate(bearer(user_token))
        
        assert identity == Identity(subject="user-1", role=Role.USER)
        assert not identity.is_admin

    def test_revoked_token(self, verifier, storage, user_token):
        storage.revocations.revoke(user_token)
        storage.revocations.revoke(user_token)
        
        with pytest.raises(RevokedCredentials) as exc:
            verifier.authenticate(bearer(user_token))
        assert exc.value.status_code == 403

    def test_revocation_checked_before_expiry(self, verifier, storage, tokens):
        token = tokens.issue("user-1", Role.USER, expires_delta=timedelta(seconds=-60))
        storage.revocations.revoke(token)
        
        with pytest.raises(RevokedCredentials):
            verifier.authenticate(bearer(token))

    def test_expired_token(self, verifier, tokens):
        token = tokens.issue("user-1", Role.USER, expires_delta=timedelta(seconds=-60))
        
        with pytest.raises(ExpiredCredentials) as exc:
            verifier.authenticate(bearer(token))
        assert exc.value.status_code == 401

    def test_wrong_signature(self, verifier):
        token = jwt.encode(
            {"sub": "user-1", "role": "user", "exp": 9999999999},
            "some-other-secret-that-is-32-bytes-long",
            algorithm="HS256",
        )
        with pytest.raises(InvalidCredentials):
            verifier.authenticate(bearer(token))

    def test_garbage_token(self, verifier):
        with pytest.raises(InvalidCredentials):
            verifier.authenticate(bearer("not-a-jwt"))

    @pytest.mark.parametrize("claims", [
        {"role": "user"},
        {"sub": "user-1"},
        {"sub": "user-1", "role": "superuser"},
        {"sub": "user-1", "role": "user", "type": "refresh"},
    ])
    def test_missing_or_unknown_claims(self, verifier, claims):
        token = jwt.encode({**claims, "exp": 9999999999}, TEST_SECRET, algorithm="HS256")
        
        with pytest.raises(MalformedCredentials):
            verifier.authenticate(bearer(token))

    def test_authenticate_with_token_returns_raw_token(self, verifier, admin_token):
        identity, token = verifier.authenticate_with_token(bearer(admin_token))
        
        assert identity.role == Role.ADMIN
        assert token == admin_token


# =============================================================================
# AuthorizationGuard Tests
# =============================================================================


class TestAuthorizationGuard:
    def test_empty_roles_allow_anyone(self, guard):
        guard.authorize(Identity("u", Role.USER), set())
        guard.authorize(Identity("a", Role.ADMIN), frozenset())

    def test_admin_only_rejects_user(self, guard):
        with pytest.raises(InsufficientRole):
            guard.authorize(Identity("u", Role.USER), {Role.ADMIN})

    def test_allowed_role_passes(self, guard):
        guard.authorize(Identity("u", Role.USER), {Role.ADMIN, Role.USER})


# =============================================================================
# Password Tests
# =============================================================================


class TestPasswords:
    def test_round_trip(self):
        stored = hash_password("precious", iterations=1_000)
        assert verify_password("precious", stored)
        assert not verify_password("Precious", stored)

    def test_salted(self):
        assert hash_password("precious", 1_000) != hash_password("precious", 1_000)

    def test_corrupt_hash(self):
        assert not verify_password("precious", "nonsense")

    def test_stored_format_records_iterations(self):
        iterations, salt, digest = hash_password("precious", 1_000).split(":")
        
        assert iterations == "1000"
        assert len(salt) == 64
        assert len(digest) == 64
