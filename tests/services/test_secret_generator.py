import string

import pytest

from stackinit.constants import PASSWORD_ALPHABET
from stackinit.services.secret_generator import random_hex, random_password


@pytest.mark.parametrize("byte_length", [0, 1, 16, 32])
def test_random_hex_has_twice_the_byte_length(byte_length):
    token = random_hex(byte_length)

    assert len(token) == 2 * byte_length
    assert set(token) <= set(string.hexdigits.lower())


def test_random_hex_differs_between_calls():
    assert random_hex(16) != random_hex(16)


@pytest.mark.parametrize("length", [1, 20, 64])
def test_random_password_uses_only_alphabet(length):
    password = random_password(length)

    assert len(password) == length
    assert all(char in PASSWORD_ALPHABET for char in password)


def test_random_password_with_custom_alphabet():
    password = random_password(50, alphabet="ab")

    assert len(password) == 50
    assert set(password) <= {"a", "b"}


def test_random_password_rejects_empty_alphabet():
    with pytest.raises(ValueError, match="alphabet"):
        random_password(10, alphabet="")
