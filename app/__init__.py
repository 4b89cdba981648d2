"""
Lead file storage application package.

This package contains:
- api: FastAPI routes for uploading, resolving and deleting lead files
- auth: Supabase bearer-token verification for the routes
- db: Supabase metadata store and the FileRecord data contract
- services: primary object store, Google Drive backup, dual-storage
  coordinators, URL resolution and DocuSeal signed-document lookup
- worker: Celery tasks for webhook follow-up work
- tests: Test suites
"""
