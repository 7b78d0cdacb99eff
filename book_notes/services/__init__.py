"""Book Notes - services package

Modules for external integrations:
- Shared async HTTP client
- Google Books and Open Library cover lookups
- Cover resolution with fallback image
"""
