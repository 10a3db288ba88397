"""Infrastructure layer: SQLite storage, migrations, and repositories.

This layer depends on stdlib and third-party libs (SQLAlchemy, Alembic).
It must never import from services, commands, or output. Repositories
return plain row dicts; the service layer turns them into domain models.
"""
