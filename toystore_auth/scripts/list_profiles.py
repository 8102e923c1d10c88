"""
List Profiles Script
Prints the rows of the profiles table through the Supabase data API; a quick
check that SUPABASE_URL and the key in .env are picked up.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from toystore_auth.config import settings
from toystore_auth.database.supabase_client import SupabaseClient
from toystore_auth.modules.profiles.service import ProfileService
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ENV_NAMES = ["SUPABASE_URL", "VITE_SUPABASE_URL", "SUPABASE_ANON_KEY", "VITE_SUPABASE_ANON_KEY", "SUPABASE_KEY"]


def main() -> int:
    if not settings.supabase_url or not settings.supabase_anon_key:
        logger.error("Supabase URL or key not found in environment. Create a .env file or export:")
        for name in ENV_NAMES:
            logger.error(f"  {name}")
        return 2

    logger.info(f"Using Supabase URL: {settings.supabase_url}")
    try:
        profiles = ProfileService(SupabaseClient.get_service_client()).list_profiles()
    except Exception as e:
        logger.error(f"Error fetching profiles: {e}")
        return 1
    logger.info(f"Profiles: {profiles}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
