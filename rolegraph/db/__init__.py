"""Persistence: models, sessions and the entity store."""
