"""Unit tests for auth/passwords.py -- bcrypt hashing capability."""

from __future__ import annotations

from auth.passwords import MAX_PASSWORD_BYTES, BcryptHasher, fits_bcrypt


def test_hash_is_salted_per_call(hasher: BcryptHasher) -> None:
    first = hasher.hash("secret1")
    second = hasher.hash("secret1")
    assert first != second
    assert hasher.verify("secret1", first)
    assert hasher.verify("secret1", second)


def test_verify_rejects_wrong_password(hasher: BcryptHasher) -> None:
    digest = hasher.hash("secret1")
    assert not hasher.verify("secret2", digest)


def test_verify_malformed_digest_is_a_mismatch(hasher: BcryptHasher) -> None:
    assert hasher.verify("secret1", "not-a-bcrypt-digest") is False


def test_cost_factor_is_encoded_in_digest() -> None:
    assert BcryptHasher(rounds=5).hash("pw").startswith("$2b$05$")


def test_dummy_digest_never_matches_user_input(hasher: BcryptHasher) -> None:
    assert hasher.dummy_digest.startswith("$2b$04$")
    assert not hasher.verify("", hasher.dummy_digest)


def test_fits_bcrypt_counts_utf8_bytes() -> None:
    assert fits_bcrypt("x" * MAX_PASSWORD_BYTES)
    assert not fits_bcrypt("x" * (MAX_PASSWORD_BYTES + 1))
    assert not fits_bcrypt("é" * 37)
