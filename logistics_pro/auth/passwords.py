from typing import Tuple

from fastapi_users.password import PasswordHelper

password_helper = PasswordHelper()


def hash_password(password: str) -> str:
    return password_helper.hash(password)


def verify_password(password: str, password_hash: str) -> Tuple[bool, str]:
    """Constant-time check. Second item is a new hash when the stored one uses an outdated scheme."""
    return password_helper.verify_and_update(password, password_hash)


def burn_hash_time(password: str) -> None:
    """Spend the same time as a real verification so unknown phones are not distinguishable."""
    password_helper.hash(password)
