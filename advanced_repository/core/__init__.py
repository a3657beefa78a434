"""
Core utilities for settings, errors, logging and FastAPI dependencies.

This package provides:
- Application-level settings (separate from DB settings)
- The repository exception hierarchy
- Context-aware logging configuration
- Dependency helpers (repository and pagination injection)
"""
