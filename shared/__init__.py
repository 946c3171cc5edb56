"""Shared package for the nomadic skills survey backend.

- Database models (models.py) - SQLAlchemy declarative models and time helpers
- Enums (enums.py) - Questionnaire option sets, role types and sync error kinds
- Validation (validation.py, schemas.py) - Input validation, sanitization and pydantic payloads
"""
