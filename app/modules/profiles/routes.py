from fastapi import APIRouter, Depends
from app.core.dependencies import get_admin_record_store, get_current_user
from app.database.record_store import RecordStore
from app.modules.auth.schemas import SessionUser
from app.modules.profiles.schemas import ProfileUpdate, ProfileResponse
from app.modules.profiles.service import ProfileService

router = APIRouter(prefix="/profile", tags=["profile"])


def get_profile_service(store: RecordStore = Depends(get_admin_record_store)) -> ProfileService:
    return ProfileService(store)


@router.get("", response_model=ProfileResponse)
def get_profile(
    current_user: SessionUser = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Get the signed-in user's profile"""
    return service.get_profile(current_user.id)


@router.put("", response_model=ProfileResponse)
def update_profile(
    profile_data: ProfileUpdate,
    current_user: SessionUser = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Update the signed-in user's profile"""
    return service.update_profile(current_user.id, profile_data)
