"""Unit tests for auth/policy.py -- email, password, and registration input rules."""

import pytest

from auth.errors import ValidationError
from auth.policy import (
    INVALID_EMAIL_MESSAGE,
    MISSING_FIELDS_MESSAGE,
    PASSWORD_TOO_LONG_MESSAGE,
    WEAK_PASSWORD_MESSAGE,
    clean_optional,
    is_valid_email,
    is_valid_password,
    normalize_email,
    password_fits_hash,
    validate_registration,
)


@pytest.mark.parametrize(
    "email",
    ["a@example.com", "first.last+trip@sub.example.co.uk", "X_Y%z@host-name.io"],
)
def test_valid_emails(email):
    assert is_valid_email(email)


@pytest.mark.parametrize(
    "email",
    ["", "plainaddress", "no-at.example.com", "a@example", "a@example.c", "a b@example.com", "@example.com"],
)
def test_invalid_emails(email):
    assert not is_valid_email(email)


def test_password_meeting_every_rule_is_accepted():
    assert is_valid_password("Abc12345!")


@pytest.mark.parametrize(
    "password",
    [
        "abc12345",  # no uppercase, no symbol
        "Abc1234!"[:7],  # too short
        "ABC12345!",  # no lowercase
        "Abcdefgh!",  # no digit
        "Abc123456",  # no symbol
        "Abc12345€",  # symbol outside the allowed set
    ],
)
def test_weak_passwords_are_rejected(password):
    assert not is_valid_password(password)


def test_each_symbol_in_the_set_counts():
    for symbol in "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?":
        assert is_valid_password(f"Abc1234{symbol}"), symbol


def test_non_ascii_letters_do_not_satisfy_case_rules():
    assert not is_valid_password("Ábc12345!")


def test_normalize_email_trims_and_lowercases():
    assert normalize_email("  Ann@Example.COM ") == "ann@example.com"


def test_clean_optional_collapses_blank_to_none():
    assert clean_optional(None) is None
    assert clean_optional("   ") is None
    assert clean_optional(" Lee ") == "Lee"


class TestValidateRegistration:
    def test_valid_input_passes(self):
        validate_registration("a@example.com", "Abc12345!", "Ann")

    @pytest.mark.parametrize(
        ("email", "password", "first_name", "field"),
        [
            ("", "Abc12345!", "Ann", "email"),
            ("a@example.com", "", "Ann", "password"),
            ("a@example.com", "Abc12345!", "   ", "firstName"),
            (None, None, None, "email"),
        ],
    )
    def test_missing_fields(self, email, password, first_name, field):
        with pytest.raises(ValidationError) as exc:
            validate_registration(email, password, first_name)
        assert exc.value.message == MISSING_FIELDS_MESSAGE
        assert exc.value.field == field

    def test_bad_email_reported_before_weak_password(self):
        with pytest.raises(ValidationError) as exc:
            validate_registration("not-an-email", "weak", "Ann")
        assert exc.value.message == INVALID_EMAIL_MESSAGE
        assert exc.value.field == "email"

    def test_weak_password(self):
        with pytest.raises(ValidationError) as exc:
            validate_registration("a@example.com", "abc12345", "Ann")
        assert exc.value.message == WEAK_PASSWORD_MESSAGE
        assert exc.value.field == "password"

    def test_multibyte_password_over_bcrypt_limit(self):
        password = "Abc1!" + "é" * 59  # 64 characters, 123 UTF-8 bytes
        assert is_valid_password(password)
        with pytest.raises(ValidationError) as exc:
            validate_registration("a@example.com", password, "Ann")
        assert exc.value.message == PASSWORD_TOO_LONG_MESSAGE
        assert exc.value.field == "password"


def test_password_fits_hash_counts_bytes_not_characters():
    assert password_fits_hash("A" * 72)
    assert not password_fits_hash("A" * 73)
    assert password_fits_hash("é" * 36)
    assert not password_fits_hash("é" * 37)
