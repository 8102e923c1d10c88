from supabase import Client
from fastapi import HTTPException
from typing import Any, Dict, Optional
from toystore_auth.config import settings
from toystore_auth.core.exceptions import ProfileConflictError
from toystore_auth.database.sql_pool import SqlPool
from toystore_auth.modules.auth.provisioning import (
    ProvisioningChain, ProvisioningContext, ProvisioningFailedError
)
from toystore_auth.modules.auth.schemas import LoginRequest, LoginResponse, SignupRequest, SignupResponse
from toystore_auth.modules.profiles.models import PROFILE_ROLES
from toystore_auth.modules.profiles.schemas import ProfilePublic
from toystore_auth.modules.profiles.service import ProfileService
import logging

logger = logging.getLogger(__name__)


def _serialize_session(session) -> Optional[Dict[str, Any]]:
    if session is None:
        return None
    if hasattr(session, "model_dump"):
        return session.model_dump(mode="json")
    return dict(session)


class AuthService:
    def __init__(
        self,
        supabase: Client,
        session_client: Optional[Client] = None,
        sql_pool: Optional[SqlPool] = None,
        has_service_role: Optional[bool] = None,
        chain: Optional[ProvisioningChain] = None,
    ):
        self.supabase = supabase
        self.session_client = session_client or supabase
        self.sql_pool = sql_pool
        self.has_service_role = settings.has_service_role if has_service_role is None else has_service_role
        self.chain = chain or ProvisioningChain()
        self.profiles = ProfileService(supabase)

    def signup(self, signup_data: SignupRequest) -> SignupResponse:
        """Create a profile using the first provisioning strategy that works"""
        if not signup_data.username or not signup_data.email or not signup_data.password:
            raise HTTPException(status_code=400, detail="Username, email and password are required")
        if signup_data.role and signup_data.role not in PROFILE_ROLES:
            raise HTTPException(status_code=400, detail=f"Invalid role: {signup_data.role}")

        ctx = ProvisioningContext(
            supabase=self.supabase,
            sql_pool=self.sql_pool,
            has_service_role=self.has_service_role,
            profiles_table=settings.profiles_table,
            legacy_table=settings.legacy_profiles_table,
        )
        try:
            user = self.chain.run(signup_data, ctx)
        except ProfileConflictError as e:
            raise HTTPException(status_code=400, detail=e.message)
        except ProvisioningFailedError as e:
            logger.error(f"Signup error: {e}")
            raise HTTPException(status_code=500, detail=f"Signup failed: {e}")
        return SignupResponse(user=user)

    def login(self, login_data: LoginRequest) -> LoginResponse:
        """Resolve username/email to a profile, then verify via Supabase Auth or the stored password"""
        identifier = login_data.username_or_email
        password = login_data.password
        if not identifier or not password:
            raise HTTPException(status_code=400, detail="Username/email and password are required")

        try:
            profile = self.profiles.find_by_identifier(identifier)
        except Exception as e:
            logger.error(f"Profile lookup failed: {e}")
            raise HTTPException(status_code=500, detail=f"Login failed: {e}")

        if not profile:
            raise HTTPException(status_code=400, detail="Account not found. Please create an account first.")

        user = ProfilePublic.from_row(profile)

        auth_response = self._sign_in(profile.get("email"), password)
        if auth_response is not None and getattr(auth_response, "user", None):
            return LoginResponse(user=user, session=_serialize_session(getattr(auth_response, "session", None)))

        # Profile-only accounts: plaintext comparison (development only)
        stored_password = profile.get("password")
        if stored_password and password == stored_password:
            return LoginResponse(user=user, session=None)

        raise HTTPException(status_code=401, detail="Invalid username or password")

    def _sign_in(self, email: Optional[str], password: str):
        if not email:
            return None
        try:
            return self.session_client.auth.sign_in_with_password({
                "email": email,
                "password": password
            })
        except Exception as e:
            logger.debug(f"Supabase Auth sign-in did not verify {email}: {e}")
            return None
