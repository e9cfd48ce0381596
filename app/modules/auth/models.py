# Supabase Auth + tables: users, profiles
# Authentication itself is handled by Supabase Auth (auth.users table):
# - sign_in_with_password() - email/password login for the admin dashboard
# - exchange_code_for_session() - OAuth-style redirect completion
# - get_user() - resolve the current user from an access token
# - sign_out() - end the session

"""
Expected Supabase table structure:

users:
- id: uuid (primary key, references auth.users.id)
- email: text (not null)
- role: text (not null, check role in ('admin', 'student'))
- created_at: timestamp (default: now())

profiles:
- id: uuid (primary key, references auth.users.id)
- email: text (not null)
- role: text (default: 'student')
- full_name: text (nullable)
- avatar_url: text (nullable)
- bio: text (nullable)
- grade: int2 (nullable)
- updated_at: timestamp (nullable)

users rows are written by app/scripts/create_admin.py; profiles rows are
created on first sign-in and edited by their owner.
"""
