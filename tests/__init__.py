"""
Supabase gateway test suite.

This package contains:
- unit/: Unit tests (fake backend over httpx.MockTransport)
- integration/: HTTP and /mcp tests against the app over httpx.ASGITransport
"""
