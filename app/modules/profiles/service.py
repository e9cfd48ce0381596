from app.config.catalog_config import PROFILES, GRADES, is_valid_grade
from app.database.record_store import RecordStore, RecordStoreError
from app.modules.profiles.schemas import ProfileUpdate, ProfileResponse
from datetime import datetime, timezone
from fastapi import HTTPException


class ProfileService:
    def __init__(self, store: RecordStore):
        self.store = store

    def get_profile(self, user_id: str) -> ProfileResponse:
        """Get profile by user ID"""
        try:
            row = self.store.get(PROFILES, user_id)
        except RecordStoreError as e:
            raise HTTPException(status_code=500, detail=e.message)
        if not row:
            raise HTTPException(status_code=404, detail="Profile not found")
        return ProfileResponse(**row)

    def update_profile(self, user_id: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Update profile fields that were provided"""
        if profile_data.grade is not None and not is_valid_grade(profile_data.grade):
            raise HTTPException(
                status_code=400,
                detail=f"Invalid grade: {profile_data.grade}. Must be one of {', '.join(str(g) for g in GRADES)}"
            )
        update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}
        if profile_data.full_name is not None:
            update_data["full_name"] = profile_data.full_name
        if profile_data.avatar_url is not None:
            update_data["avatar_url"] = profile_data.avatar_url
        if profile_data.bio is not None:
            update_data["bio"] = profile_data.bio
        if profile_data.grade is not None:
            update_data["grade"] = profile_data.grade

        try:
            rows = self.store.update(PROFILES, user_id, update_data)
        except RecordStoreError as e:
            raise HTTPException(status_code=500, detail=e.message)
        if not rows:
            raise HTTPException(status_code=404, detail="Profile not found")
        return ProfileResponse(**rows[0])
