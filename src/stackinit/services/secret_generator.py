"""Random tokens and passwords for generated credentials."""

import secrets

from stackinit.constants import DATABASE_PASSWORD_LENGTH, PASSWORD_ALPHABET


def random_hex(byte_length: int) -> str:
    """Return ``byte_length`` secure random bytes as ``2 * byte_length`` hex characters."""
    if byte_length < 0:
        raise ValueError("byte_length must not be negative")
    return secrets.token_hex(byte_length)


def random_password(length: int = DATABASE_PASSWORD_LENGTH, alphabet: str = PASSWORD_ALPHABET) -> str:
    """Map ``length`` secure random bytes into ``alphabet`` by modulo."""
    if not alphabet:
        raise ValueError("alphabet must not be empty")
    if length < 0:
        raise ValueError("length must not be negative")
    return "".join(alphabet[byte % len(alphabet)] for byte in secrets.token_bytes(length))
