# auth.py
import hashlib, hmac, logging, secrets
from typing import Optional

import db
from errors import BadRequest, Unauthorized
from models import NewUser, User

logger = logging.getLogger(__name__)

_SCRYPT = {"n": 2 ** 14, "r": 8, "p": 1, "dklen": 64}

def hash_password(password: str) -> str:
    """Return "<hex digest>.<hex salt>"."""
    salt = secrets.token_hex(16)
    digest = hashlib.scrypt(password.encode(), salt=salt.encode(), **_SCRYPT)
    return f"{digest.hex()}.{salt}"

def verify_password(supplied: str, stored: str) -> bool:
    digest_hex, sep, salt = (stored or "").partition(".")
    if not sep or not salt:
        return False
    supplied_digest = hashlib.scrypt(supplied.encode(), salt=salt.encode(), **_SCRYPT)
    try:
        stored_digest = bytes.fromhex(digest_hex)
    except ValueError:
        return False
    return hmac.compare_digest(supplied_digest, stored_digest)

def public_user(user: Optional[User]) -> Optional[dict]:
    if user is None:
        return None
    data = user.to_dict()
    data.pop("password", None)
    return data

def register_user(new_user: NewUser) -> User:
    if db.get_user_by_username(new_user.username) is not None:
        raise BadRequest("Username already exists")
    user = db.create_user(NewUser(
        username=new_user.username,
        password=hash_password(new_user.password),
        full_name=new_user.full_name,
        role=new_user.role,
    ))
    logger.info(f"Registered {user.role} {user.username} (id={user.id})")
    return user

def authenticate(username: str, password: str) -> User:
    user = db.get_user_by_username((username or "").strip())
    if user is None or not verify_password(password or "", user.password):
        logger.warning(f"Failed login for {username!r}")
        raise Unauthorized("Invalid username or password")
    return user

MIN_PASSWORD_LENGTH = 6

def change_password(user: User, current_password: str, new_password: str) -> dict:
    """Replace the stored hash once the current password checks out."""
    if not verify_password(current_password or "", user.password):
        logger.warning(f"Rejected password change for {user.username}")
        raise Unauthorized("Current password is incorrect")
    if not isinstance(new_password, str) or len(new_password) < MIN_PASSWORD_LENGTH:
        raise BadRequest(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    updated = db.update_user(user.id, {"password": hash_password(new_password)})
    logger.info(f"Password changed for {user.username}")
    return public_user(updated)
