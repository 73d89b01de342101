"""
Administrator credential store.

Exactly one admin record exists. It normally lives in the `admin_users`
table; when the database is not configured or a database call fails, the
store switches to an in-memory copy for the rest of the process lifetime.
Each switch is recorded as a FallbackTransition and logged at WARNING.
The in-memory copy starts from the last record the database returned.

Verification never raises. Password rotation requires the strong hasher:
a plain-text digest must never overwrite an existing one.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from .hashing import PasswordHasher, is_plain_digest, plain_digest, verify_plain


logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class FallbackTransition:
    """One switch from the database to the in-memory record."""
    operation: str
    reason: str
    at: str


class CredentialStore:
    """Owns the single administrator identity."""

    def __init__(
        self,
        primary: Optional[Any],
        hasher: PasswordHasher,
        default_email: str,
        default_password: str,
    ):
        self.primary = primary
        self.hasher = hasher
        self.default_email = default_email
        self._default_password = default_password
        self.fallback: Optional[Dict[str, Any]] = None
        self._last_known: Optional[Dict[str, Any]] = None
        self.transitions: List[FallbackTransition] = []
        self._initialized = False

        if primary is None:
            self._fall_back("startup", "no database configured")

    @property
    def using_fallback(self) -> bool:
        return bool(self.transitions)

    @property
    def hashing_available(self) -> bool:
        return self.hasher.strong

    def _fall_back(self, operation: str, cause: Union[BaseException, str]) -> None:
        if isinstance(cause, BaseException):
            reason = str(cause) or type(cause).__name__
        else:
            reason = cause
        if self.fallback is None and self._last_known is not None:
            self.fallback = copy.deepcopy(self._last_known)
        self.transitions.append(FallbackTransition(operation=operation, reason=reason, at=_now()))
        logger.warning(f"[credentials] {operation}: switching to in-memory admin record ({reason})")

    def _remember(self, admin: Optional[Dict[str, Any]]) -> None:
        if admin is not None:
            self._last_known = copy.deepcopy(admin)

    async def get_admin(self) -> Optional[Dict[str, Any]]:
        """Current admin record, or None when none exists yet."""
        if self.using_fallback:
            return copy.deepcopy(self.fallback)
        try:
            admin = await self.primary.select_first()
        except Exception as e:
            self._fall_back("get_admin", e)
            return copy.deepcopy(self.fallback)
        self._remember(admin)
        return admin

    async def _initial_digest(self, password: str) -> str:
        if self.hasher.strong:
            return await asyncio.to_thread(self.hasher.hash, password)
        logger.warning("[credentials] Using plain-text password storage (development only!)")
        return plain_digest(password)

    async def ensure_initialized(self) -> Optional[Dict[str, Any]]:
        """Create the default admin on first call if none exists."""
        if self._initialized:
            return await self.get_admin()
        self._initialized = True

        existing = await self.get_admin()
        if existing:
            return existing

        logger.info("[credentials] No admin user found, creating default admin")
        now = _now()
        record = {
            "id": str(uuid.uuid4()),
            "email": self.default_email,
            "password_hash": await self._initial_digest(self._default_password),
            "created_at": now,
            "updated_at": now,
        }

        if not self.using_fallback:
            try:
                created = await self.primary.insert(record)
                self._remember(created)
                logger.info("[credentials] Default admin user created in database")
                return created
            except Exception as e:
                self._fall_back("ensure_initialized", e)

        self.fallback = record
        logger.info("[credentials] Default admin user created in memory")
        return copy.deepcopy(record)

    async def verify(self, password: str) -> bool:
        try:
            admin = await self.get_admin()
            if not admin:
                return False

            digest = admin.get("password_hash") or ""
            if is_plain_digest(digest):
                logger.warning("[credentials] Using plain-text password verification (development only!)")
                return verify_plain(password, digest)

            if not self.hasher.strong:
                logger.error("[credentials] No password verification method available")
                return False

            return await asyncio.to_thread(self.hasher.verify, password, digest)
        except Exception as e:
            logger.error(f"[credentials] Error verifying password: {e}")
            return False

    async def _write(self, admin: Dict[str, Any], updates: Dict[str, Any], operation: str) -> bool:
        if not self.using_fallback:
            try:
                updated = await self.primary.update(admin["id"], updates)
                self._remember(updated)
                return updated is not None
            except Exception as e:
                self._fall_back(operation, e)

        base = self.fallback if self.fallback is not None else admin
        self.fallback = {**base, **updates}
        return True

    async def update_password(self, new_password: str) -> bool:
        if not self.hasher.strong:
            logger.error("[credentials] bcrypt not available, cannot update password")
            return False
        try:
            admin = await self.get_admin()
            if not admin:
                return False
            digest = await asyncio.to_thread(self.hasher.hash, new_password)
            return await self._write(admin, {"password_hash": digest, "updated_at": _now()}, "update_password")
        except Exception as e:
            logger.error(f"[credentials] Error updating password: {e}")
            return False

    async def update_email(self, new_email: str) -> bool:
        try:
            admin = await self.get_admin()
            if not admin:
                return False
            return await self._write(admin, {"email": new_email, "updated_at": _now()}, "update_email")
        except Exception as e:
            logger.error(f"[credentials] Error updating email: {e}")
            return False
