# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure.

Example:
    from eduanalytics.infrastructure.database import Database

    database = Database.from_settings(settings.database)
    async with database.session() as session:
        result = await session.execute(select(Student))
"""

from eduanalytics.infrastructure.database.connection import Database, DatabaseError

__all__ = [
    "Database",
    "DatabaseError",
]
