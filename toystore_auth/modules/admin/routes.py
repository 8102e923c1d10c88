from fastapi import APIRouter, Depends
from toystore_auth.core.dependencies import get_supabase, require_service_role
from toystore_auth.modules.admin.schemas import (
    ConfirmOrCreateRequest, ConfirmOrCreateResponse, ProfileListResponse
)
from toystore_auth.modules.admin.service import AdminService
from supabase import Client
from typing import Optional

router = APIRouter(tags=["admin"])


def get_admin_service(supabase: Client = Depends(get_supabase)) -> AdminService:
    return AdminService(supabase)


@router.post(
    "/admin/confirm-or-create",
    response_model=ConfirmOrCreateResponse,
    dependencies=[Depends(require_service_role)],
)
def confirm_or_create(
    request: Optional[ConfirmOrCreateRequest] = None,
    service: AdminService = Depends(get_admin_service)
):
    """Create a confirmed auth user and make sure a linked profile row exists"""
    return service.confirm_or_create(request or ConfirmOrCreateRequest())


@router.get("/admin/confirm-or-create")
async def confirm_or_create_usage():
    return {
        "ok": False,
        "message": (
            "This endpoint accepts POST requests with JSON. Send a POST to /admin/confirm-or-create "
            "with { email, username, password, role } in the JSON body."
        ),
    }


@router.get(
    "/debug/profiles",
    response_model=ProfileListResponse,
    dependencies=[Depends(require_service_role)],
)
def debug_profiles(service: AdminService = Depends(get_admin_service)):
    """List profile rows (without passwords) to check the server can read the table"""
    return service.list_profiles()
