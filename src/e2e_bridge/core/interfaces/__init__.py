"""Core interfaces and abstractions.

Why:
- Defines the contracts (Protocol) concrete adapters implement.
- Inverts dependencies: the core depends on abstractions, never on FastAPI,
  SQLAlchemy or Playwright.
"""
