"""Unit tests for auth/tokens.py -- password hashing and the JWT session codec.

Covers:
- bcrypt hashes never equal the plaintext and verify against it
- malformed stored hashes count as a mismatch, not an exception
- tokens decode to the identity they were minted for
- expired, tampered, foreign-secret and claim-less tokens decode to None
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import jwt

from auth.tokens import PasswordHasher, TokenCodec


class TestPasswordHasher:
    def test_hash_differs_from_plaintext_and_verifies(self, hasher: PasswordHasher) -> None:
        hashed = hasher.hash("hunter2")
        assert hashed != "hunter2"
        assert hasher.verify("hunter2", hashed)

    def test_wrong_password_does_not_verify(self, hasher: PasswordHasher) -> None:
        hashed = hasher.hash("hunter2")
        assert not hasher.verify("hunter3", hashed)

    def test_same_password_gets_a_fresh_salt(self, hasher: PasswordHasher) -> None:
        assert hasher.hash("hunter2") != hasher.hash("hunter2")

    def test_work_factor_is_encoded_in_hash(self) -> None:
        hashed = PasswordHasher(rounds=5).hash("hunter2")
        assert hashed.startswith("$2b$05$")

    def test_malformed_hash_is_a_mismatch(self, hasher: PasswordHasher) -> None:
        assert hasher.verify("hunter2", "not-a-bcrypt-hash") is False

    def test_burn_returns_nothing(self, hasher: PasswordHasher) -> None:
        assert hasher.burn("anything") is None


class TestTokenCodec:
    def test_round_trip_preserves_identity(self, codec: TokenCodec) -> None:
        token = codec.encode(42, "alice")
        identity = codec.decode(token)
        assert identity is not None
        assert identity.user_id == 42
        assert identity.username == "alice"
        assert identity.expires_at - identity.issued_at == 3600

    def test_explicit_expiry_overrides_default(self, codec: TokenCodec) -> None:
        identity = codec.decode(codec.encode(1, "alice", expire_seconds=60))
        assert identity is not None
        assert identity.expires_at - identity.issued_at == 60

    def test_expired_token_is_rejected(self, codec: TokenCodec, secret_key: str) -> None:
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        token = jwt.encode(
            {"sub": "alice", "user_id": 1, "iat": past - timedelta(hours=8), "exp": past},
            secret_key,
            algorithm="HS256",
        )
        assert codec.decode(token) is None

    def test_tampered_token_is_rejected(self, codec: TokenCodec) -> None:
        token = codec.encode(1, "alice")
        head, payload, signature = token.split(".")
        flipped = signature[:-2] + ("AA" if signature[-2:] != "AA" else "BB")
        assert codec.decode(f"{head}.{payload}.{flipped}") is None

    def test_token_from_other_secret_is_rejected(self, codec: TokenCodec) -> None:
        other = TokenCodec("a-completely-different-secret-key-000000", expire_seconds=3600)
        assert codec.decode(other.encode(1, "alice")) is None

    def test_missing_user_id_claim_is_rejected(self, codec: TokenCodec, secret_key: str) -> None:
        token = jwt.encode(
            {"sub": "alice", "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            secret_key,
            algorithm="HS256",
        )
        assert codec.decode(token) is None

    def test_garbage_is_rejected(self, codec: TokenCodec) -> None:
        assert codec.decode("not.a.jwt") is None
        assert codec.decode("") is None
