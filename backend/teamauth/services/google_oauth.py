import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import requests

from teamauth.core.config import Settings, settings as default_settings
from teamauth.core.exceptions import OAuthError

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"


@dataclass
class GoogleProfile:
    google_id: str
    email: str
    name: str
    picture: Optional[str] = None


class GoogleOAuthClient:
    """Authorization-code flow against Google, scopes `openid profile email`."""

    def __init__(self, config: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.config = config or default_settings
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.config.google_client_id and self.config.google_client_secret)

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.config.google_client_id,
            "redirect_uri": self.config.google_redirect_uri,
            "response_type": "code",
            "scope": "openid profile email",
            "state": state,
            "prompt": "select_account",
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    def _post_json(self, url: str, data: dict) -> dict:
        try:
            resp = self.session.post(url, data=data, timeout=self.config.google_timeout)
        except requests.RequestException as e:
            logger.warning("Google token exchange failed: %s", e)
            raise OAuthError("google_auth_error") from e
        if resp.status_code != 200:
            logger.warning("Google token exchange returned HTTP %s", resp.status_code)
            raise OAuthError("google_auth_failed")
        return resp.json()

    def fetch_profile(self, code: str) -> GoogleProfile:
        tokens = self._post_json(
            TOKEN_URL,
            {
                "code": code,
                "client_id": self.config.google_client_id,
                "client_secret": self.config.google_client_secret,
                "redirect_uri": self.config.google_redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        access_token = tokens.get("access_token")
        if not access_token:
            raise OAuthError("google_auth_failed")

        try:
            resp = self.session.get(
                USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=self.config.google_timeout,
            )
        except requests.RequestException as e:
            logger.warning("Google userinfo request failed: %s", e)
            raise OAuthError("google_auth_error") from e
        if resp.status_code != 200:
            raise OAuthError("google_auth_failed")

        info = resp.json()
        if not info.get("sub") or not info.get("email"):
            raise OAuthError("google_profile_incomplete")
        if info.get("email_verified") is False:
            raise OAuthError("google_email_not_verified")

        return GoogleProfile(
            google_id=str(info["sub"]),
            email=info["email"].strip().lower(),
            name=info.get("name") or info["email"].split("@", 1)[0],
            picture=info.get("picture"),
        )
