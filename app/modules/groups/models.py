# Supabase table: groups
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

groups:
- id: uuid (primary key, default: gen_random_uuid())
- name: text (not null)
- created_by: uuid (foreign key to users.id, not null)
- created_at: timestamp (default: now())

There is deliberately no ON DELETE CASCADE from tasks.group_id; the service
deletes a group's tasks before the group row (see GroupService.delete_group).
"""
