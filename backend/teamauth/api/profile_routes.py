# backend/teamauth/api/profile_routes.py

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from teamauth.api.deps_auth import get_codec, get_current_user, get_db, get_storage
from teamauth.api.schemas import ApiKeysIn, PasswordChangeIn, ProfileUpdateIn, user_out
from teamauth.core.config import settings
from teamauth.core.crypto import KeyCodec
from teamauth.models.user import User
from teamauth.services import accounts
from teamauth.services.storage import ObjectStorage

router = APIRouter()


@router.patch("/profile")
def update_profile(
    payload: ProfileUpdateIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = accounts.update_profile(db, current_user, payload.name, payload.email)
    return {"success": True, "message": "Profile updated successfully.", "user": user_out(user)}


@router.patch("/profile-picture")
async def update_profile_picture(
    profileImage: UploadFile = File(...),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    # read one byte past the limit so oversized uploads are detectable without buffering them whole
    data = await profileImage.read(settings.profile_pic_max_bytes + 1)
    user = accounts.update_profile_picture(
        db,
        storage,
        current_user,
        data,
        profileImage.filename or "profile",
        profileImage.content_type,
        settings.profile_pic_max_bytes,
    )
    return {"success": True, "message": "Profile picture updated successfully.", "user": user_out(user)}


@router.patch("/change-password")
def change_password(
    payload: PasswordChangeIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    accounts.change_password(db, current_user, payload.currentPassword, payload.newPassword)
    return {"success": True, "message": "Password updated successfully."}


@router.patch("/update-password")
def update_password(
    payload: PasswordChangeIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    accounts.change_password(db, current_user, payload.currentPassword, payload.newPassword)
    return {"success": True, "message": "Password updated successfully"}


@router.get("/api-keys")
def get_api_keys(
    codec: KeyCodec = Depends(get_codec),
    current_user: User = Depends(get_current_user),
):
    return {
        "success": True,
        "apiKeys": accounts.get_api_keys(codec, current_user, settings.api_key_providers),
    }


@router.post("/api-keys")
def save_api_keys(
    payload: ApiKeysIn,
    db: Session = Depends(get_db),
    codec: KeyCodec = Depends(get_codec),
    current_user: User = Depends(get_current_user),
):
    accounts.save_api_keys(db, codec, current_user, payload.apiKeys)
    return {"success": True, "message": "API keys saved successfully"}
