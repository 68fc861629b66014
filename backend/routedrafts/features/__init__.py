"""
Feature modules for the route draft engine.

Each feature is a self-contained module with:
- schemas.py - Pydantic schemas
- service.py - Business logic
- repository.py - Document access (optional)
"""
