"""SQLAlchemy Core table definitions for the bootctl state database.

Timestamps are stored as ISO 8601 text in UTC.
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, MetaData, Table, Text

metadata = MetaData()

# At most one row: the active authenticated session.
sessions = Table(
    "sessions",
    metadata,
    Column("slot", Integer, primary_key=True, default=1),
    Column("token", Text, nullable=False),
    Column("user_id", Text, nullable=False),
    Column("created", Text, nullable=False),
    Column("last_activity", Text, nullable=False),
    Column("expires_at", Text),
)

# Fingerprint -> anonymous identity binding. Never rewritten once created.
device_identities = Table(
    "device_identities",
    metadata,
    Column("fingerprint", Text, primary_key=True),
    Column("user_id", Text, nullable=False),
    Column("device_name", Text),
    Column("created", Text, nullable=False),
)

# Consecutive resolution failures per fingerprint (first-run vs repeated).
identity_failures = Table(
    "identity_failures",
    metadata,
    Column("fingerprint", Text, primary_key=True),
    Column("count", Integer, nullable=False, default=0, server_default="0"),
    Column("last_error", Text),
    Column("updated", Text, nullable=False),
)
