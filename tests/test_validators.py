import time

import pytest

from crm_backend.common.validators import require_email, require_non_negative, round_currency
from crm_backend.core.exceptions import ValidationError


@pytest.mark.parametrize("email", ["hi@globex.test", "first.last+crm@mail.example.co.uk", "a-b_c@x-y.io"])
def test_email_accepts_common_addresses(email):
    assert require_email(email) == email


@pytest.mark.parametrize("email", ["plain", "no-domain@", "@example.com", "a@b", "a@b.c", "a@@b.com"])
def test_email_rejects_malformed_addresses(email):
    with pytest.raises(ValidationError, match="Please provide a valid email"):
        require_email(email)


def test_email_rejects_hostile_input_quickly():
    hostile = "a" * 5000 + "@" + "a" * 5000 + "!"

    started = time.perf_counter()
    with pytest.raises(ValidationError):
        require_email(hostile)

    assert time.perf_counter() - started < 1.0


@pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan"), "1e400"])
def test_non_negative_rejects_non_finite(value):
    with pytest.raises(ValidationError, match="Amount must be a finite number"):
        require_non_negative(value, "Amount")


@pytest.mark.parametrize("value", ["Infinity", "NaN", "sNaN"])
def test_round_currency_rejects_non_finite(value):
    with pytest.raises(ValidationError, match="Amount must be a finite number"):
        round_currency(value)


def test_round_currency_rejects_garbage():
    with pytest.raises(ValidationError, match="Amount must be a number"):
        round_currency("twelve")
