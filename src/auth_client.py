"""
Email/password authentication against Firebase Authentication.

Uses the Identity Toolkit REST endpoints; profile documents are created and
stamped through a UserStore when one is supplied.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import requests

from errors import AuthError, UserNotFoundError
from utils import get_secret

logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"

# Backend error codes -> messages shown to the user
AUTH_ERROR_MESSAGES = {
    "EMAIL_EXISTS": "An account with this email already exists.",
    "EMAIL_NOT_FOUND": "No account found with this email.",
    "INVALID_PASSWORD": "Incorrect password.",
    "INVALID_LOGIN_CREDENTIALS": "Invalid email or password.",
    "INVALID_EMAIL": "Please enter a valid email address.",
    "WEAK_PASSWORD": "Password should be at least 6 characters.",
    "USER_DISABLED": "This account has been disabled.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Please try again later.",
    "MISSING_PASSWORD": "Please enter a password."
}


@dataclass
class Session:
    uid: str
    email: str
    id_token: str
    refresh_token: str = ""
    display_name: str = ""
    expires_at: Optional[datetime] = None

    @property
    def is_expired(self):
        return self.expires_at is not None and datetime.utcnow() >= self.expires_at


def _error_code(response):
    try:
        message = response.json().get("error", {}).get("message", "")
    except ValueError:
        return None
    # e.g. "WEAK_PASSWORD : Password should be at least 6 characters"
    return message.split(" ")[0] or None


class AuthClient:
    """Sign up, sign in, sign out and password reset."""

    BASE_URL = IDENTITY_TOOLKIT_URL

    def __init__(self, api_key=None, store=None, session=None, timeout=10):
        self.api_key = api_key or get_secret("FIREBASE_API_KEY")
        if not self.api_key:
            raise AuthError("No Firebase API key configured", code="CONFIGURATION_NOT_FOUND")
        self.store = store
        self.http = session or requests.Session()
        self.timeout = timeout
        self.current_session = None

    def _post(self, endpoint, payload):
        url = f"{self.BASE_URL}/accounts:{endpoint}"
        try:
            response = self.http.post(url, params={"key": self.api_key}, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Auth request %s failed: %s", endpoint, e)
            raise AuthError("Could not reach the authentication service. Please try again.") from e

        if not response.ok:
            code = _error_code(response)
            logger.warning("Auth %s rejected: %s", endpoint, code or response.status_code)
            message = AUTH_ERROR_MESSAGES.get(code, "Authentication failed. Please try again.")
            raise AuthError(message, code=code)
        return response.json()

    def _session_from(self, data, display_name=""):
        expires_in = int(data.get("expiresIn", 3600))
        return Session(
            uid=data["localId"],
            email=data.get("email", ""),
            id_token=data["idToken"],
            refresh_token=data.get("refreshToken", ""),
            display_name=data.get("displayName") or display_name,
            expires_at=datetime.utcnow() + timedelta(seconds=expires_in)
        )

    def sign_up(self, email, password, display_name=""):
        """
        Create an account and its profile document.

        Args:
            email: Account email
            password: Account password
            display_name: Optional name shown on the profile and social feed

        Returns:
            Session for the new user

        Raises:
            AuthError: The backend rejected the request (e.g. EMAIL_EXISTS)
        """
        data = self._post("signUp", {"email": email, "password": password, "returnSecureToken": True})
        session = self._session_from(data, display_name)

        if display_name:
            self._post("update", {"idToken": session.id_token, "displayName": display_name, "returnSecureToken": False})

        if self.store is not None:
            self.store.create_profile(session.uid, email, display_name)

        self.current_session = session
        logger.info("Signed up user %s", session.uid)
        return session

    def sign_in(self, email, password):
        data = self._post("signInWithPassword", {"email": email, "password": password, "returnSecureToken": True})
        session = self._session_from(data)

        if self.store is not None:
            try:
                profile = self.store.update_profile(session.uid, last_login_at=datetime.utcnow())
                session.display_name = session.display_name or profile.display_name
            except UserNotFoundError:
                # Account predates its profile document
                logger.warning("No profile for %s; creating one", session.uid)
                self.store.create_profile(session.uid, session.email, session.display_name)

        self.current_session = session
        return session

    def sign_out(self):
        self.current_session = None

    def send_password_reset(self, email):
        self._post("sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})
        logger.info("Password reset email requested")
