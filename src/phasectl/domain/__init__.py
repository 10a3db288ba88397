"""Domain layer: types, catalog, and pure lifecycle rules.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
