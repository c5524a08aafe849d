"""
services/ — Persistence-facing logic behind the HTTP handlers.

Each module exposes plain functions taking a SQLAlchemy Session.
Handlers call them and translate their errors into responses.
"""
