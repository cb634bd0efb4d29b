"""
Notes API Backend — Application Package Initializer
====================================================

What: Marks the `app` directory as a Python package.
Who:  Imported by uvicorn (`app.main:app`), Alembic and pytest.

Architecture Note:
    The backend is layered the same way for every request:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP binding only
    ├─────────────────────────────────────┤
    │     Pipeline (Authorization Core)   │  ← gates: auth, id, input, owner, state
    ├─────────────────────────────────────┤
    │  Verifier / Validator / Repository  │  ← identity provider, schemas, store
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Collaborators (database engine, identity-provider HTTP client) are built
    once in the application lifespan and handed down explicitly; no layer
    reaches for a module-level client.
"""

__version__ = "1.0.0"
