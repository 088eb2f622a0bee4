"""
ClubHub backend.

Administrative backend for a club organised as one President, several
Divisions (each led by a Division Head) and Groups nested inside Divisions.

Packages:
- core: configuration, actor context, errors, token decoding
- db: engine / session factory
- models: SQLAlchemy models (User, Division, Group, GroupMembership, AuditLog)
- schemas: Pydantic projections and request bodies
- services: invariant checks, persistence store, role assignment,
  membership lifecycle, division administration, audit + notifications
- api: thin FastAPI adapter over the services
"""
__version__ = "1.0.0"
