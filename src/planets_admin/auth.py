"""Bearer-token authentication and roles.

Users and their tokens come from a YAML file::

    users:
      - token: s3cret
        id: u1
        name: Ada
        email: ada@example.com
        roles: [admin]
"""

import hmac
import logging
from pathlib import Path

import yaml
from fastapi import Depends, Header, HTTPException, Request, status
from pydantic import BaseModel, ValidationError

from planets_admin.errors import ConfigError

logger = logging.getLogger(__name__)


class Roles:
    """All roles known to the application."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"

    @classmethod
    def all(cls) -> list[str]:
        return [cls.ADMIN, cls.MANAGER, cls.EMPLOYEE]


class User(BaseModel):
    id: str
    name: str
    email: str = ""
    roles: list[str] = []


class TokenStore:
    """Maps bearer tokens to users.

    Users whose email appears in ``super_admin_emails`` are granted every
    role.
    """

    def __init__(self, super_admin_emails: list[str] | None = None):
        self.super_admin_emails = {e.strip().lower() for e in (super_admin_emails or []) if e.strip()}
        self._users: dict[str, User] = {}

    def add(self, token: str, user: User) -> User:
        if user.email.lower() in self.super_admin_emails:
            roles = list(user.roles) + [r for r in Roles.all() if r not in user.roles]
            user = user.model_copy(update={"roles": roles})
        self._users[token] = user
        return user

    def load_file(self, path: Path) -> int:
        """Load users from a YAML file, returning how many were added."""
        try:
            doc = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read users file {path}: {e}") from e

        users = (doc.get("users") or []) if isinstance(doc, dict) else None
        if not isinstance(users, list):
            raise ConfigError(f"Users file {path} must contain a \"users\" list")

        count = 0
        for entry in users:
            if not isinstance(entry, dict):
                raise ConfigError(f"Invalid user entry in {path}: expected a mapping")
            entry = dict(entry)
            token = entry.pop("token", None)
            if not token:
                logger.warning("Skipping user without token in %s", path)
                continue
            try:
                user = User(**entry)
            except ValidationError as e:
                raise ConfigError(f"Invalid user entry in {path}: {e}") from e
            self.add(str(token), user)
            count += 1
        logger.info("Loaded %d user(s) from %s", count, path)
        return count

    def authenticate(self, token: str | None) -> User | None:
        if not token:
            return None
        presented = token.strip()
        for stored, user in self._users.items():
            if hmac.compare_digest(presented, stored):
                return user
        return None


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token or None


async def current_user(request: Request, authorization: str | None = Header(default=None)) -> User | None:
    """FastAPI dependency: the authenticated user, or None."""
    store: TokenStore = request.app.state.token_store
    return store.authenticate(_bearer_token(authorization))


async def require_user(user: User | None = Depends(current_user)) -> User:
    """FastAPI dependency: the authenticated user, 401 otherwise."""
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user
