# Supabase table: tasks
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

tasks:
- id: uuid (primary key, default: gen_random_uuid())
- title: text (not null) - unique per group_id, enforced by the service at creation
- description: text (nullable)
- status: text (not null, default: 'todo') - free-form column name
- priority: text (not null, default: 'medium') - values: low, medium, high
- group_id: uuid (foreign key to groups.id, not null)
- assigned_to: uuid (foreign key to users.id, nullable)
- updated_at: timestamptz (not null) - written by the service on every mutation,
  doubles as the optimistic-lock version
- activity: jsonb (not null, default: '[]') - append-only list of
  {"user": display name, "action": text, "timestamp": iso8601}
"""
