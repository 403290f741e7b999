# core/session.py

"""
Console session state: access token, refresh token and the signed-in user.

The browser build keeps these in local storage. Here the storage is a port
(MemorySessionStore for tests, FileSessionStore for a persistent console)
and SessionContext is passed to whatever issues authenticated calls.
"""

import json
import os
from pathlib import Path
from typing import Optional, Dict, Any

from core.auth_errors import friendly_auth_error
from core.errors import AuthenticationError
from core.logging_config import logger


# ============================================================
# Storage port
# ============================================================
class SessionStore:
    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    def __init__(self):
        self._data: Dict[str, Any] = {}

    def get(self, key):
        return self._data.get(key)

    def set(self, key, value):
        self._data[key] = value

    def clear(self):
        self._data.clear()


class FileSessionStore(SessionStore):
    """JSON file on disk, readable only by the owner."""

    def __init__(self, path):
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text())
        except ValueError:
            logger.warning(f"Session file {self.path} is corrupt - ignoring it")
            return {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Owner-only from creation, so tokens are never readable by others.
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        # An existing file keeps its old mode through os.open.
        os.fchmod(fd, 0o600)
        with os.fdopen(fd, "w") as f:
            f.write(json.dumps(data))

    def get(self, key):
        return self._read().get(key)

    def set(self, key, value):
        data = self._read()
        data[key] = value
        self._write(data)

    def clear(self):
        if self.path.exists():
            self.path.unlink()


# ============================================================
# Session context
# ============================================================
def _user_from_auth(auth_user) -> Dict[str, Any]:
    metadata = getattr(auth_user, "user_metadata", None) or {}
    return {
        "id": auth_user.id,
        "email": auth_user.email,
        "name": metadata.get("name"),
        "role": metadata.get("role"),
    }


class SessionContext:
    """
    Holds the console's Supabase session. `auth_client` is a Supabase
    client created with the anon key (the browser's level of access).
    """

    def __init__(self, auth_client, store: SessionStore):
        self.auth_client = auth_client
        self.store = store

    @property
    def access_token(self) -> Optional[str]:
        return self.store.get("access_token")

    @property
    def refresh_token(self) -> Optional[str]:
        return self.store.get("refresh_token")

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self.store.get("user")

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def _save(self, auth_response) -> Dict[str, Any]:
        session = auth_response.session
        user = _user_from_auth(auth_response.user or session.user)
        self.store.set("access_token", session.access_token)
        self.store.set("refresh_token", session.refresh_token)
        self.store.set("user", user)
        return user

    def login(self, email: str, password: str) -> Dict[str, Any]:
        email = email.strip().lower()
        try:
            response = self.auth_client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            logger.warning(f"Login attempt failed for {email}: {type(e).__name__}")
            raise AuthenticationError(friendly_auth_error(e))

        if not response or not response.session or not response.session.access_token:
            raise AuthenticationError("Invalid email or password")

        user = self._save(response)
        logger.info(f"Console session started for {email}")
        return user

    def refresh(self) -> Dict[str, Any]:
        refresh_token = self.refresh_token
        if not refresh_token:
            self.store.clear()
            raise AuthenticationError("Session expired. Please sign in again.")

        try:
            response = self.auth_client.auth.refresh_session(refresh_token)
        except Exception as e:
            logger.warning(f"Session refresh failed: {type(e).__name__}")
            response = None

        if not response or not response.session:
            self.store.clear()
            raise AuthenticationError("Session expired. Please sign in again.")

        return self._save(response)

    def restore(self) -> Optional[Dict[str, Any]]:
        """Resume a stored session on startup. None when there is nothing valid to resume."""
        if not self.access_token:
            return None
        try:
            return self.ensure_valid()
        except AuthenticationError:
            return None

    def ensure_valid(self) -> Dict[str, Any]:
        """
        Validate the stored access token with Supabase; refresh it once if
        it is rejected. A failed refresh clears the stored session.
        """
        token = self.access_token
        if not token:
            raise AuthenticationError("Not signed in")

        try:
            response = self.auth_client.auth.get_user(token)
            if response and response.user:
                user = _user_from_auth(response.user)
                self.store.set("user", user)
                return user
        except Exception as e:
            logger.info(f"Access token rejected ({type(e).__name__}) - refreshing")

        return self.refresh()

    def logout(self) -> None:
        try:
            self.auth_client.auth.sign_out()
        except Exception as e:
            logger.warning(f"Supabase sign-out failed: {e}")
        finally:
            self.store.clear()

    def authorization_header(self) -> Dict[str, str]:
        token = self.access_token
        if not token:
            raise AuthenticationError("Not signed in")
        return {"Authorization": f"Bearer {token}"}
