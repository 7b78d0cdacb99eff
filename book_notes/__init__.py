"""Book Notes - personal book tracking application

This package contains the application modules:
- Web routes and templates (api.py)
- Listing, search and validation logic (library.py, validators.py)
- Record stores (storage/)
- Cover lookups against external services (services/)
- CLI interface (main.py)
"""

__version__ = "1.0.0"
