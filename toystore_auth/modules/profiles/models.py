# Supabase table: public.profiles
# Schema lives in migrations/001_create_profiles.sql
# Actual operations are handled via Supabase SDK in service.py (or SqlPool for direct writes)

"""
Expected table structure:

profiles:
- id: bigint identity or uuid (primary key)
- auth_id: uuid (nullable, references auth.users.id; null = profile-only account)
- username: text (unique, not null)
- email: text (unique, not null)
- role: text (customer | seller | admin, default 'customer')
- password: text (nullable, plaintext; development only)
- created_at: timestamp (default: now())

users: legacy table with the same columns, written only by the RLS fallback path.
"""

PROFILE_ROLES = ("customer", "seller", "admin")
DEFAULT_ROLE = "customer"
PUBLIC_COLUMNS = "id, auth_id, username, email, role"
