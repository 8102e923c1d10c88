from fastapi import APIRouter, Depends
from toystore_auth.core.dependencies import get_supabase, get_session_client, get_sql_pool, has_service_role
from toystore_auth.database.sql_pool import SqlPool
from toystore_auth.modules.auth.schemas import LoginRequest, LoginResponse, SignupRequest, SignupResponse
from toystore_auth.modules.auth.service import AuthService
from supabase import Client
from typing import Optional

router = APIRouter(tags=["auth"])


def get_auth_service(
    supabase: Client = Depends(get_supabase),
    session_client: Client = Depends(get_session_client),
    sql_pool: Optional[SqlPool] = Depends(get_sql_pool),
    service_role: bool = Depends(has_service_role),
) -> AuthService:
    return AuthService(
        supabase,
        session_client=session_client,
        sql_pool=sql_pool,
        has_service_role=service_role,
    )


# Plain `def` handlers: the Supabase SDK and SQLAlchemy calls block, so they run in the threadpool.
@router.post("/signup", response_model=SignupResponse)
def signup(
    signup_data: Optional[SignupRequest] = None,
    service: AuthService = Depends(get_auth_service)
):
    """Create a store account (profile, plus an auth identity when the service role is configured)"""
    return service.signup(signup_data or SignupRequest())


@router.post("/login", response_model=LoginResponse)
def login(
    login_data: Optional[LoginRequest] = None,
    service: AuthService = Depends(get_auth_service)
):
    """Login by username or email"""
    return service.login(login_data or LoginRequest())
