"""Persistence layer: table models, mappers and repositories."""
