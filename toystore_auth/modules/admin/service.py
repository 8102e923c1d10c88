from supabase import Client
from fastapi import HTTPException
from toystore_auth.modules.admin.schemas import (
    ConfirmOrCreateRequest, ConfirmOrCreateResponse, ProfileListResponse
)
from toystore_auth.modules.profiles.models import DEFAULT_ROLE, PROFILE_ROLES
from toystore_auth.modules.profiles.schemas import ProfilePublic
from toystore_auth.modules.profiles.service import ProfileService
import logging

logger = logging.getLogger(__name__)


class AdminService:
    """Service-role helpers. The routes only build this after checking the service role key."""

    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.profiles = ProfileService(supabase)

    def confirm_or_create(self, request: ConfirmOrCreateRequest) -> ConfirmOrCreateResponse:
        if not request.email or not request.password:
            raise HTTPException(status_code=400, detail="email and password are required")

        if request.role and request.role not in PROFILE_ROLES:
            raise HTTPException(status_code=400, detail=f"Invalid role: {request.role}")

        username = request.username or request.email
        role = request.role or DEFAULT_ROLE
        try:
            response = self.supabase.auth.admin.create_user({
                "email": request.email,
                "password": request.password,
                "email_confirm": True,
                "user_metadata": {"username": username, "role": role},
            })
            created_user = getattr(response, "user", None)
            if created_user is None:
                raise RuntimeError("Admin create_user returned no user")
        except Exception as e:
            logger.error(f"Admin confirm-or-create error: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        profile_created = True
        try:
            self.profiles.insert({
                "auth_id": created_user.id,
                "username": username,
                "email": request.email,
                "role": role,
            })
        except Exception as e:
            logger.warning(f"Failed to create profile row for {created_user.id}: {e}")
            profile_created = False

        return ConfirmOrCreateResponse(
            ok=True,
            user=ProfilePublic(id=created_user.id, username=username, email=request.email, role=role),
            profile_created=profile_created,
        )

    def list_profiles(self) -> ProfileListResponse:
        try:
            return ProfileListResponse(data=self.profiles.list_profiles())
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
