# Supabase tables: subjects, resources
# This file documents the expected database schema
# Actual operations are handled via the RecordStore in service.py

"""
Expected Supabase table structure:

subjects:
- id: uuid (primary key)
- name: text (not null)
- grade: int2 (not null, check grade in (9, 10, 11, 12))
- subject_type: text (nullable) - science, language, humanities, commerce, ...
- created_at: timestamp (default: now())

resources:
- id: uuid (primary key)
- title: text (not null)
- description: text (nullable)
- subject_id: uuid (foreign key to subjects.id, not null)
- grade: int2 (not null) - must equal the grade of the referenced subject
- category: text (not null, check category in ('notes', 'pyqs', 'projects'))
- file_url: text (not null) - public URL in the "resources" storage bucket
- file_name: text (not null) - original upload name, used for downloads
- created_at: timestamp (default: now())

Storage bucket "resources" (public): flat object keys, <uuid4 hex><ext>
"""
