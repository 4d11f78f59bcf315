# backend/teamauth/api/auth_routes.py

import json
import logging
import secrets
from typing import Optional
from urllib.parse import quote, urlencode

from fastapi import APIRouter, Cookie, Depends, Request, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from teamauth.api.deps_auth import get_current_user, get_db, get_google_client, get_mailer
from teamauth.api.schemas import (
    ForgotPasswordIn,
    LoginIn,
    LoginOut,
    ResetPasswordIn,
    SignupIn,
    VerifyEmailIn,
    user_out,
)
from teamauth.core.config import settings
from teamauth.core.exceptions import OAuthError
from teamauth.core.security import (
    REFRESH_COOKIE_NAME,
    clear_refresh_cookie,
    issue_access_token,
    issue_refresh_token,
)
from teamauth.models.user import User
from teamauth.services import accounts
from teamauth.services.email import EmailSender
from teamauth.services.google_oauth import GoogleOAuthClient

logger = logging.getLogger(__name__)

router = APIRouter()

OAUTH_STATE_COOKIE = "oauth_state"
OAUTH_STATE_MAX_AGE = 60 * 10


# ---------- SIGNUP / VERIFY ----------

@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(payload: SignupIn, db: Session = Depends(get_db), mailer: EmailSender = Depends(get_mailer)):
    accounts.signup(db, mailer, payload.name, payload.email, payload.password)
    return {"success": True, "message": "Signup successful. Please verify your email."}


@router.post("/verify-email")
def verify_email(payload: VerifyEmailIn, db: Session = Depends(get_db), mailer: EmailSender = Depends(get_mailer)):
    user = accounts.verify_email(db, mailer, payload.code)
    return {
        "success": True,
        "message": "Email verified successfully. Welcome to the app!",
        "user": user_out(user),
    }


# ---------- LOGIN / LOGOUT ----------

@router.post("/login", response_model=LoginOut)
def login(payload: LoginIn, response: Response, db: Session = Depends(get_db)):
    user = accounts.authenticate(db, payload.email, payload.password)

    access_token = issue_access_token(user.id)
    issue_refresh_token(response, user.id)

    return LoginOut(accessToken=access_token, user=user_out(user))


@router.post("/logout")
def logout(response: Response):
    clear_refresh_cookie(response)
    return {"success": True, "message": "Logged out successfully"}


# ---------- GOOGLE ----------

def _login_error_redirect(code: str) -> RedirectResponse:
    url = f"{settings.frontend_url}/login?error={quote(code)}"
    response = RedirectResponse(url, status_code=status.HTTP_302_FOUND)
    response.delete_cookie(OAUTH_STATE_COOKIE, path="/api/auth/google")
    return response


@router.get("/google")
def google_auth(google: GoogleOAuthClient = Depends(get_google_client)):
    if not google.configured:
        return _login_error_redirect("google_auth_unavailable")

    state = secrets.token_urlsafe(24)
    response = RedirectResponse(google.authorization_url(state), status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        OAUTH_STATE_COOKIE,
        state,
        max_age=OAUTH_STATE_MAX_AGE,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/api/auth/google",
    )
    return response


@router.get("/google/callback")
def google_auth_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    db: Session = Depends(get_db),
    google: GoogleOAuthClient = Depends(get_google_client),
):
    if error or not code:
        logger.warning("Google auth failed: %s", error or "missing code")
        return _login_error_redirect("google_auth_failed")

    expected_state = request.cookies.get(OAUTH_STATE_COOKIE)
    if not state or not expected_state or not secrets.compare_digest(state, expected_state):
        logger.warning("Google auth state mismatch")
        return _login_error_redirect("google_auth_error")

    try:
        profile = google.fetch_profile(code)
    except OAuthError as e:
        logger.warning("Google auth failed: %s", e.reason)
        return _login_error_redirect(e.reason)

    try:
        user = accounts.complete_google_login(db, profile)
        access_token = issue_access_token(user.id)
    except Exception:
        db.rollback()
        logger.exception("Error during Google auth token generation/redirect")
        return _login_error_redirect("processing_failed")

    user_data = {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "profilePic": user.profile_pic,
        "role": user.role,
    }
    query = urlencode({"accessToken": access_token, "user": json.dumps(user_data)})
    response = RedirectResponse(f"{settings.frontend_url}/auth/callback?{query}", status_code=status.HTTP_302_FOUND)
    issue_refresh_token(response, user.id)
    response.delete_cookie(OAUTH_STATE_COOKIE, path="/api/auth/google")
    return response


# ---------- PASSWORD RESET ----------

@router.post("/forgot-password")
def forgot_password(payload: ForgotPasswordIn, db: Session = Depends(get_db), mailer: EmailSender = Depends(get_mailer)):
    accounts.forget_password(db, mailer, payload.email, settings.frontend_url)
    return {"success": True, "message": "Reset password email sent successfully"}


@router.post("/reset-password/{token}")
def reset_password(
    token: str,
    payload: ResetPasswordIn,
    db: Session = Depends(get_db),
    mailer: EmailSender = Depends(get_mailer),
):
    accounts.reset_password(db, mailer, token, payload.password)
    return {"success": True, "message": "Password reset successfully"}


# ---------- SESSION ----------

@router.post("/refresh-token")
def refresh_token(
    refresh_cookie: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE_NAME),
    db: Session = Depends(get_db),
):
    user = accounts.refresh_session(db, refresh_cookie)
    return {"success": True, "accessToken": issue_access_token(user.id)}


@router.get("/me")
def me(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    accounts.touch_last_active(db, current_user)
    return user_out(current_user)


@router.patch("/set-inactive")
def set_inactive(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    accounts.set_inactive(db, current_user)
    return {"success": True, "message": "User marked as inactive."}
