"""
SnipStash Backend - Application Package
=======================================

What: Code snippet manager with email/password accounts.
Who:  Imported by uvicorn (`snipstash.main:app`), Alembic and pytest.

Architecture Note:
    The backend follows the same layering on every request path:

    ┌─────────────────────────────────────┐
    │   Middleware (request id, gate)     │  ← redirects page requests
    ├─────────────────────────────────────┤
    │       Routes (API + pages)          │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │    Services (ownership, merging)    │  ← business rules
    ├─────────────────────────────────────┤
    │  Stores (credentials, records)      │  ← async SQLAlchemy
    └─────────────────────────────────────┘

    Routes never talk to the database directly; services never build
    HTTP responses.
"""

__version__ = "1.0.0"
