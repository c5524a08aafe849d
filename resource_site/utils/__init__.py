"""Shared utility helpers used across routers and services."""
