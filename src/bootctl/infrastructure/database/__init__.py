"""SQLite state database (SQLAlchemy Core)."""
