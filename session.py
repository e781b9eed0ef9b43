"""
Authentication session and route guard.

The token lives in local storage. A token that merely looks valid (decodes
as a JWT and has not expired) counts as signed in until the one profile
fetch made on first use settles it. The guard is a convenience for the
storefront; the backend enforces authorization on its own.
"""
import logging
import time
from enum import Enum
from typing import Optional

import jwt
from pydantic import BaseModel

from api import ApiError, StoreApi
from schemas import User

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth_token"
REDIRECT_KEY = "redirect_after_login"
LOGIN_PATH = "/login"
LOGIN_MESSAGE = "Please login first to continue"
DENIED_MESSAGE = "You don't have permission to access this page."


def read_token(storage) -> Optional[str]:
    return storage.get(TOKEN_KEY) or None


def token_looks_valid(token: Optional[str]) -> bool:
    if not token:
        return False
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return False
    exp = claims.get("exp")
    return exp is None or exp > time.time()


class Access(str, Enum):
    ALLOW = "allow"
    LOGIN = "login"
    DENIED = "denied"


class GuardDecision(BaseModel):
    access: Access
    redirect: Optional[str] = None
    message: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.access == Access.ALLOW


class AuthSession:
    def __init__(self, storage, api: StoreApi):
        self.storage = storage
        self.api = api
        self.user: Optional[User] = None
        self.checked = False
        self.error: Optional[str] = None

    @property
    def token(self) -> Optional[str]:
        return read_token(self.storage)

    @property
    def is_loading(self) -> bool:
        return not self.checked

    @property
    def is_authenticated(self) -> bool:
        if not self.checked:
            return token_looks_valid(self.token)
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.role == "ADMIN"

    def _discard_token(self) -> None:
        self.storage.delete(TOKEN_KEY)
        self.user = None

    def check_auth(self) -> Optional[User]:
        token = self.token
        if not token:
            self.user = None
        elif not token_looks_valid(token):
            logger.info("Discarding malformed or expired token")
            self._discard_token()
        else:
            try:
                self.user = self.api.profile()
            except ApiError as e:
                logger.warning("Auth check failed: %s", e)
                if e.is_auth_error:
                    self._discard_token()
                else:
                    self.user = None
        self.checked = True
        return self.user

    def ensure_checked(self) -> Optional[User]:
        if not self.checked:
            self.check_auth()
        return self.user

    def _signed_in(self, token: str, user: User) -> None:
        self.storage.set(TOKEN_KEY, token)
        self.user = user
        self.checked = True
        self.error = None

    def login(self, email: str, password: str) -> bool:
        if not email or not password:
            self.error = "Please enter email and password"
            return False
        try:
            resp = self.api.login(email, password)
        except ApiError as e:
            self.error = e.detail if e.status_code else "Unable to reach the server. Please try again."
            return False
        self._signed_in(resp.token, resp.user)
        return True

    def register(self, name: str, email: str, password: str, confirm_password: str, phone: Optional[str] = None) -> bool:
        if not name or not email or not password:
            self.error = "Please fill all required fields"
            return False
        if password != confirm_password:
            self.error = "Passwords do not match"
            return False
        try:
            resp = self.api.register(name, email, password, phone)
        except ApiError as e:
            self.error = e.detail if e.status_code else "Unable to reach the server. Please try again."
            return False
        self._signed_in(resp.token, resp.user)
        return True

    def logout(self) -> None:
        self._discard_token()
        self.checked = True

    def require_auth(self, redirect_to: Optional[str] = None) -> bool:
        if self.ensure_checked() is not None:
            return True
        if redirect_to:
            self.storage.set(REDIRECT_KEY, redirect_to)
        return False

    def consume_redirect(self, default: str = "/") -> str:
        path = self.storage.get(REDIRECT_KEY)
        if path is None:
            return default
        self.storage.delete(REDIRECT_KEY)
        return path

    def guard(self, path: str, require_admin: bool = False) -> GuardDecision:
        if not self.require_auth(path):
            return GuardDecision(access=Access.LOGIN, redirect=LOGIN_PATH, message=LOGIN_MESSAGE)
        if require_admin and not self.is_admin:
            return GuardDecision(access=Access.DENIED, message=DENIED_MESSAGE)
        return GuardDecision(access=Access.ALLOW)
