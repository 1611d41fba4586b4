"""
Account related use cases: existence checks, registration, login and
password changes for users stored in the "users" collection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from referral.core.config import Settings, get_settings
from referral.core.logging import get_logger
from referral.core.security import hash_password, is_hashed, verify_password
from referral.domain.lookup import contact_from
from referral.repositories.json_store import JsonStore

logger = get_logger(__name__)

USERS = "users"


class AuthError(Exception):
    """Base class for authentication-related exceptions."""


class RegistrationError(AuthError):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AccountExistsError(AuthError):
    pass


class InvalidCredentialsError(AuthError):
    pass


class WeakPasswordError(AuthError):
    pass


def utc_now_iso() -> str:
    """Timestamp in the persisted format, e.g. 2024-01-01T00:00:00.000Z."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def public_user(user: Optional[dict]) -> Optional[dict]:
    """User record without its password, for API responses."""
    if user is None:
        return None
    return {k: v for k, v in user.items() if k != "password"}


@dataclass
class AuthService:
    """Handles account lookup, registration, login and password changes."""

    store: JsonStore
    settings: Settings = field(default_factory=get_settings)

    # -------------------------------------- helpers --------------------------------------
    def _require_contact(self, email, phone) -> dict:
        contact = contact_from(email, phone)
        if not contact["email"] and not contact["phone"]:
            raise RegistrationError("Email or phone is required")
        return contact

    def _check_password_strength(self, password: str | None) -> str:
        value = password or ""
        if len(value) < self.settings.password_min_length:
            raise WeakPasswordError(
                f"Password must be at least {self.settings.password_min_length} characters"
            )
        return value

    def find_user(self, email=None, phone=None) -> Optional[dict]:
        return self.store.find_by_alternate_key(USERS, email=email, phone=phone)

    # -------------------------------------- lookup --------------------------------------
    def check_account(self, email=None, phone=None) -> bool:
        self._require_contact(email, phone)
        return self.find_user(email, phone) is not None

    def create_pending(self, email=None, phone=None) -> dict:
        """Create a passwordless pending user for the contact, or return the existing one."""
        contact = self._require_contact(email, phone)
        with self.store.locked(USERS):
            existing = self.find_user(**contact)
            if existing:
                return existing
            user = self.store.upsert(
                USERS,
                {**contact, "status": "pending", "createdAt": utc_now_iso()},
            )
        logger.info("Pending user %s created", user["id"])
        return user

    def register_check(self, email=None, phone=None) -> str:
        """Return "login" for a known contact; otherwise record it as pending and return "signup"."""
        contact = self._require_contact(email, phone)
        if self.find_user(**contact):
            return "login"
        self.create_pending(**contact)
        return "signup"

    # -------------------------------------- register --------------------------------------
    def register(self, email=None, phone=None, password: str | None = None) -> dict:
        contact = self._require_contact(email, phone)
        password = self._check_password_strength(password)
        # lookup and write stay under one lock so two submits cannot both create
        with self.store.locked(USERS):
            existing = self.find_user(**contact)
            if existing and (existing.get("status") != "pending" or existing.get("password")):
                raise AccountExistsError("Account already exists")
            record = {
                "password": hash_password(password),
                "status": "active",
                "source": "self_register",
            }
            if existing:
                # keep the stored contact the caller did not repeat
                record.update({k: v for k, v in contact.items() if v})
                record["id"] = existing.get("id")
            else:
                record.update(contact)
                record["createdAt"] = utc_now_iso()
            user = self.store.upsert(USERS, record)
        logger.info("User %s registered", user["id"])
        return user

    # -------------------------------------- login --------------------------------------
    def login(self, email=None, phone=None, password: str | None = None) -> dict:
        contact = contact_from(email, phone)
        if not contact["email"] and not contact["phone"]:
            raise InvalidCredentialsError("Invalid credentials")
        user = self.find_user(**contact)
        if not user or not verify_password(password or "", user.get("password")):
            raise InvalidCredentialsError("Invalid credentials")
        if not is_hashed(user.get("password")):
            user = self.store.update(USERS, user.get("id"), {"password": hash_password(password)}) or user
            logger.info("Upgraded stored password of %s to argon2", user.get("id"))
        return user

    # -------------------------------------- password --------------------------------------
    def change_password(
        self,
        new_password: str | None,
        *,
        user_id: str | None = None,
        email=None,
        phone=None,
        old_password: str | None = None,
    ) -> Optional[dict]:
        """Replace a user's password. Returns None when the user cannot be found."""
        new_password = self._check_password_strength(new_password)
        if user_id:
            user = self.store.find_by_id(USERS, user_id)
        elif email or phone:
            user = self.find_user(email, phone)
        else:
            user = None
        if user is None:
            return None
        if old_password is not None and not verify_password(old_password, user.get("password")):
            raise InvalidCredentialsError("Current password does not match")
        return self.store.update(USERS, user.get("id"), {"password": hash_password(new_password)})
