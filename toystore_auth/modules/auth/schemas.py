from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional
from toystore_auth.modules.profiles.schemas import ProfilePublic


# Fields are optional here so missing values become 400s from the service, not 422s.
class SignupRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None


class LoginRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username_or_email: Optional[str] = Field(default=None, alias="usernameOrEmail")
    password: Optional[str] = None


class SignupResponse(BaseModel):
    user: ProfilePublic


class LoginResponse(BaseModel):
    user: ProfilePublic
    session: Optional[Dict[str, Any]] = None
