# backend/teamauth/main.py

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from teamauth.api.admin_routes import router as admin_router
from teamauth.api.auth_routes import router as auth_router
from teamauth.api.deps_auth import get_codec
from teamauth.api.profile_routes import router as profile_router
from teamauth.core.config import settings
from teamauth.core.exceptions import register_exception_handlers
from teamauth.core.logging import setup_logging

setup_logging()

# fail at startup, not on the first API-key request
get_codec()

app = FastAPI(title="TeamAuth API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["Authorization", "Content-Type"],
)

register_exception_handlers(app)

app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(profile_router, prefix="/api/auth", tags=["profile"])
app.include_router(admin_router, prefix="/api/auth", tags=["admin"])


@app.get("/health")
def health():
    return {"status": "ok"}
