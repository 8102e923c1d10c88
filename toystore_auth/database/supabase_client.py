import logging
from supabase import create_client, Client
from toystore_auth.config import settings

logger = logging.getLogger(__name__)


class SupabaseNotConfiguredError(RuntimeError):
    pass


class UnconfiguredSupabaseClient:
    """Placeholder used when SUPABASE_URL or a key is missing; every call fails with a clear message."""

    _message = "Supabase client not configured. Set SUPABASE_URL and SUPABASE_ANON_KEY in environment."

    def table(self, *args, **kwargs):
        raise SupabaseNotConfiguredError(self._message)

    @property
    def auth(self):
        raise SupabaseNotConfiguredError(self._message)


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            if not settings.supabase_url or not settings.supabase_anon_key:
                logger.warning("SUPABASE_URL or SUPABASE_ANON_KEY not set; Supabase calls will fail")
                return UnconfiguredSupabaseClient()
            cls._client = create_client(settings.supabase_url, settings.supabase_anon_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Falls back to the anon client."""
        if cls._service_client is None and settings.supabase_url and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client or cls.get_client()

    @classmethod
    def new_session_client(cls) -> Client:
        """Fresh anon client for password sign-in, so user sessions never attach to the shared clients."""
        if not settings.supabase_url or not settings.supabase_anon_key:
            return UnconfiguredSupabaseClient()
        return create_client(settings.supabase_url, settings.supabase_anon_key)

    @classmethod
    def reset_client(cls):
        cls._client = None
        cls._service_client = None


def get_supabase() -> Client:
    return SupabaseClient.get_service_client()


def get_session_client() -> Client:
    return SupabaseClient.new_session_client()
