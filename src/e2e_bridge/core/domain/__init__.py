"""Domain models and entities.

Why:
- Plain, strict data structures (Pydantic v2) for what crosses the bridge.
- The domain knows nothing about FastAPI, SQLAlchemy or Playwright.
"""
