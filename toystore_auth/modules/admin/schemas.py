from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from toystore_auth.modules.profiles.schemas import ProfilePublic


class ConfirmOrCreateRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    username: Optional[str] = None
    role: Optional[str] = None


class ConfirmOrCreateResponse(BaseModel):
    ok: bool = True
    user: ProfilePublic
    profile_created: bool


class ProfileListResponse(BaseModel):
    data: List[Dict[str, Any]]
