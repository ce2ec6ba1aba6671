# Supabase table: users (shared by the auth and users modules)
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Credentials are checked by this service; Supabase Auth is not used.

"""
Expected Supabase table structure:

users:
- id: uuid (primary key, default: gen_random_uuid())
- username: text (unique, not null) - stored trimmed
- password_hash: text (not null) - bcrypt
- name: text (not null) - display name used in task activity
- avatar_url: text (not null, default: '')
- created_at: timestamp (default: now())
"""
