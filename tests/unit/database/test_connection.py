# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the Database connection handle."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from src.core.config.settings import DatabaseSettings
from src.infrastructure.database import Database


def engine_with(conn: AsyncMock) -> MagicMock:
    engine = MagicMock()
    engine.connect.return_value.__aenter__ = AsyncMock(return_value=conn)
    engine.connect.return_value.__aexit__ = AsyncMock(return_value=False)
    return engine


class TestCheckConnection:
    """Tests for Database.check_connection."""

    @pytest.mark.asyncio
    async def test_not_connected(self):
        """Test an unconnected handle reports unreachable."""
        database = Database(DatabaseSettings())

        assert await database.check_connection() is False

    @pytest.mark.asyncio
    async def test_query_succeeds(self):
        """Test a successful trivial query reports reachable."""
        conn = AsyncMock()
        database = Database(DatabaseSettings())
        database._engine = engine_with(conn)

        assert await database.check_connection() is True
        assert "SELECT 1" in str(conn.execute.call_args.args[0])

    @pytest.mark.asyncio
    async def test_query_fails(self):
        """Test a driver failure reports unreachable."""
        conn = AsyncMock()
        conn.execute.side_effect = OperationalError("SELECT 1", {}, Exception("down"))
        database = Database(DatabaseSettings())
        database._engine = engine_with(conn)

        assert await database.check_connection() is False
