from supabase import Client
from toystore_auth.config import settings
from toystore_auth.core.exceptions import ProfileConflictError, is_unique_violation
from toystore_auth.modules.profiles.models import PUBLIC_COLUMNS
from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


def quote_filter_value(value: str) -> str:
    """Quote a value for a PostgREST or() filter so commas and parentheses stay literal."""
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def identifier_filter(username: str, email: str) -> str:
    return f"username.eq.{quote_filter_value(username)},email.eq.{quote_filter_value(email)}"


class ProfileService:
    """Profile rows through the Supabase data API (subject to RLS unless the client holds the service role)."""

    def __init__(self, supabase: Client, table: Optional[str] = None):
        self.supabase = supabase
        self.table = table or settings.profiles_table

    def find_by_identifier(self, identifier: str) -> Optional[Dict[str, Any]]:
        """Return the first profile whose username or email equals identifier"""
        result = self.supabase.table(self.table)\
            .select("*")\
            .or_(identifier_filter(identifier, identifier))\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def exists(self, username: str, email: str) -> bool:
        result = self.supabase.table(self.table)\
            .select("id")\
            .or_(identifier_filter(username, email))\
            .limit(1)\
            .execute()
        return bool(result.data)

    def insert(self, profile: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a profile row and return it; unique violations become ProfileConflictError"""
        try:
            result = self.supabase.table(self.table).insert(profile).execute()
        except Exception as e:
            if is_unique_violation(e):
                raise ProfileConflictError() from e
            raise
        if not result.data:
            raise RuntimeError(f"Insert into {self.table} returned no row")
        return result.data[0]

    def list_profiles(self) -> List[Dict[str, Any]]:
        result = self.supabase.table(self.table).select(PUBLIC_COLUMNS).execute()
        return result.data or []
