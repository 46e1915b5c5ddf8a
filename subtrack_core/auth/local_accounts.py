# =============================================================================
# subtrack_core/auth/local_accounts.py
# Local Username/Password Accounts
# =============================================================================
"""
Local accounts stored in the key-value store.

Keys in the shared key-value store:
    users           JSON list of {"username", "passwordHash", "fullName"}
    subscriptions   legacy un-namespaced subscription list, moved on login

Keys in the per-session store:
    currentUser     JSON {"username", "fullName"} of the signed-in user

Passwords are hashed with bcrypt. Records written by older versions carry a
plaintext "password" field; they are accepted once and rehashed on login.
bcrypt only takes the first 72 bytes of a password, so longer ones are
rejected at registration.
"""

from __future__ import annotations
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import bcrypt

from subtrack_core.auth.session_state import SessionStateStore
from subtrack_core.offline.cache_store import subscriptions_key
from subtrack_core.offline.local_database import KeyValueStore
from subtrack_core.services import BaseService, ServiceResult

USERS_KEY = "users"
CURRENT_USER_KEY = "currentUser"
LEGACY_SUBSCRIPTIONS_KEY = "subscriptions"

MIN_PASSWORD_LENGTH = 4
MAX_PASSWORD_BYTES = 72


@dataclass
class CurrentUser:
    """The locally signed-in user."""
    username: str
    full_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"username": self.username}
        if self.full_name:
            data["fullName"] = self.full_name
        return data


def hash_password(password: str, rounds: int = 12) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password, at most MAX_PASSWORD_BYTES when encoded
        rounds: bcrypt cost factor

    Returns:
        str: bcrypt hash

    Raises:
        ValueError: if the password is too long for bcrypt
    """
    if password_too_long(password):
        raise ValueError(f"password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, password_hash: str) -> bool:
    if password_too_long(password):
        return False
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        return False


def password_too_long(password: str) -> bool:
    return len(password.encode()) > MAX_PASSWORD_BYTES


class LocalAccountService(BaseService):
    """
    Register, log in and log out local users.

    Accounts are shared through kv_store; the signed-in user is kept in
    session, which defaults to the browser session's st.session_state.

    Usage:
        accounts = LocalAccountService(get_local_database())
        result = accounts.login_user("ada", "secret")
        if result:
            user = result.data
    """

    def __init__(
        self,
        kv_store: KeyValueStore,
        session: Optional[KeyValueStore] = None,
        bcrypt_rounds: int = 12,
    ):
        super().__init__()
        self.kv_store = kv_store
        self.session = session if session is not None else SessionStateStore()
        self.bcrypt_rounds = bcrypt_rounds

    def _read_json(self, key: str, store: Optional[KeyValueStore] = None) -> Optional[Any]:
        raw = (self.kv_store if store is None else store).get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            self.logger.warning(f"Ignoring malformed local record under '{key}'")
            return None

    def _get_users(self) -> List[Dict[str, Any]]:
        users = self._read_json(USERS_KEY)
        if not isinstance(users, list):
            return []
        return [u for u in users if isinstance(u, dict) and u.get("username")]

    def _put_users(self, users: List[Dict[str, Any]]) -> None:
        self.kv_store.set(USERS_KEY, json.dumps(users))

    @staticmethod
    def _find(users: List[Dict[str, Any]], username: str) -> Optional[Dict[str, Any]]:
        wanted = username.lower()
        for user in users:
            if str(user["username"]).lower() == wanted:
                return user
        return None

    # =========================================================================
    # ACCOUNT OPERATIONS
    # =========================================================================

    def register_user(
        self,
        username: str,
        password: str,
        full_name: Optional[str] = None,
    ) -> ServiceResult:
        """Create a local account. Usernames are unique ignoring case."""
        username = username.strip()
        if not username:
            return ServiceResult.fail("Username is required", error_code="VALIDATION")
        if len(password) < MIN_PASSWORD_LENGTH:
            return ServiceResult.fail(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                error_code="VALIDATION",
            )
        if password_too_long(password):
            return ServiceResult.fail(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
                error_code="VALIDATION",
            )

        users = self._get_users()
        if self._find(users, username) is not None:
            return ServiceResult.fail("Username already exists", error_code="CONFLICT")

        record: Dict[str, Any] = {
            "username": username,
            "passwordHash": hash_password(password, self.bcrypt_rounds),
        }
        if full_name:
            record["fullName"] = full_name
        users.append(record)
        self._put_users(users)

        self.logger.info(f"Registered local user '{username}'")
        return ServiceResult.ok(CurrentUser(username=username, full_name=full_name))

    def login_user(self, username: str, password: str) -> ServiceResult:
        """
        Check credentials and record the current user for this session.

        Returns:
            ServiceResult with the CurrentUser as data
        """
        users = self._get_users()
        user = self._find(users, username.strip())
        if user is None or not self._check_password(user, password):
            return ServiceResult.fail("Invalid username or password", error_code="AUTH")

        if "passwordHash" not in user:
            self._upgrade_legacy_password(users, user, password)

        current = CurrentUser(username=user["username"], full_name=user.get("fullName"))
        self.session.set(CURRENT_USER_KEY, json.dumps(current.to_dict()))
        self._migrate_legacy_subscriptions(current.username)

        self.logger.info(f"Local user '{current.username}' logged in")
        return ServiceResult.ok(current)

    def _upgrade_legacy_password(
        self, users: List[Dict[str, Any]], user: Dict[str, Any], password: str
    ) -> None:
        if password_too_long(password):
            self.logger.warning(
                f"Stored password of '{user['username']}' is too long for bcrypt; left as is"
            )
            return
        user["passwordHash"] = hash_password(password, self.bcrypt_rounds)
        user.pop("password", None)
        self._put_users(users)
        self.logger.info(f"Upgraded stored password of '{user['username']}' to bcrypt")

    @staticmethod
    def _check_password(user: Dict[str, Any], password: str) -> bool:
        if "passwordHash" in user:
            return verify_password(password, str(user["passwordHash"]))
        return user.get("password") == password

    def logout_user(self) -> None:
        self.session.remove(CURRENT_USER_KEY)

    def get_current_user(self) -> Optional[CurrentUser]:
        """Return this session's current user, or None if absent or malformed."""
        data = self._read_json(CURRENT_USER_KEY, self.session)
        if not isinstance(data, dict) or not data.get("username"):
            return None
        return CurrentUser(username=str(data["username"]), full_name=data.get("fullName"))

    def _migrate_legacy_subscriptions(self, username: str) -> None:
        legacy = self.kv_store.get(LEGACY_SUBSCRIPTIONS_KEY)
        if legacy is None:
            return

        target = subscriptions_key(username)
        if self.kv_store.get(target) is None:
            self.kv_store.set(target, legacy)
            self.logger.info(f"Moved legacy subscriptions to '{target}'")
        self.kv_store.remove(LEGACY_SUBSCRIPTIONS_KEY)
