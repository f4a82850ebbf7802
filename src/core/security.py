"""Password hashing, credential validation and CSRF tokens."""
import hashlib
import re
import secrets

ACCOUNT_NAME_PATTERN = re.compile(r"^[0-9a-zA-Z_]{3,}$")
PASSWORD_PATTERN = re.compile(r"^[0-9a-zA-Z_]{6,}$")


def digest(src: str) -> str:
    """Return the lower-case hex SHA-512 digest of a string."""
    return hashlib.sha512(src.encode("utf-8")).hexdigest()


def calculate_salt(account_name: str) -> str:
    """Salt is derived from the account name, which never changes."""
    return digest(account_name)


def calculate_passhash(account_name: str, password: str) -> str:
    """Hash a password with the account's salt."""
    return digest(f"{password}:{calculate_salt(account_name)}")


def validate_credentials(account_name: str, password: str) -> bool:
    """
    Check account name and password format.

    Account names need at least 3 and passwords at least 6 characters, both limited
    to ASCII letters, digits and underscores.
    """
    return bool(
        ACCOUNT_NAME_PATTERN.fullmatch(account_name)
        and PASSWORD_PATTERN.fullmatch(password),
    )


def generate_csrf_token() -> str:
    """Generate a random 32 character hex token."""
    return secrets.token_hex(16)


def csrf_token_matches(expected: str | None, submitted: str | None) -> bool:
    """Constant-time comparison of the session token and the submitted one."""
    if not expected or submitted is None:
        return False
    return secrets.compare_digest(expected, submitted)
