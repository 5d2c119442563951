# emotevote - Discord Emote Voting Bot
# Copyright (c) 2025-2026 Slash Daemon slashdaemon@protonmail.com
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing: [slashdaemon@protonmail.com]

"""
Registry Store

Persists registry scope snapshots to PostgreSQL. One row per
(guild_id, channel_id) holding the exported state as JSONB.
"""

import json
import logging
from typing import Any, Optional

import asyncpg

logger = logging.getLogger("emotevote.store")

CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS emote_registry_snapshots (
    guild_id BIGINT NOT NULL,
    channel_id BIGINT NOT NULL,
    state JSONB NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    PRIMARY KEY (guild_id, channel_id)
)
"""


def _decode_state(raw: Any) -> dict:
    # asyncpg returns JSONB as text unless a codec is registered
    if isinstance(raw, str):
        return json.loads(raw)
    return dict(raw)


class RegistryStore:
    """Database operations for registry snapshots."""

    def __init__(self, db_pool: asyncpg.Pool):
        """
        Initialize the registry store.

        Args:
            db_pool: AsyncPG connection pool
        """
        self.db = db_pool

    async def ensure_schema(self) -> None:
        """Create the snapshot table if it does not exist."""
        await self.db.execute(CREATE_TABLE_SQL)

    async def save_snapshot(self, state: dict[str, Any]) -> bool:
        """
        Upsert one scope's exported state.

        Args:
            state: Output of CandidateRegistry.export_state()

        Returns:
            True if the row was written
        """
        try:
            await self.db.execute(
                """
                INSERT INTO emote_registry_snapshots (guild_id, channel_id, state, updated_at)
                VALUES ($1, $2, $3::jsonb, NOW())
                ON CONFLICT (guild_id, channel_id)
                DO UPDATE SET state = EXCLUDED.state, updated_at = NOW()
                """,
                state["guild_id"],
                state["channel_id"],
                json.dumps(state),
            )
            return True

        except Exception as e:
            logger.error(
                f"Error saving snapshot for scope ({state.get('guild_id')}, "
                f"{state.get('channel_id')}): {e}",
                exc_info=True,
            )
            return False

    async def load_snapshots(self) -> list[dict[str, Any]]:
        """
        Load every persisted scope.

        Returns:
            List of exported scope states (empty on failure)
        """
        try:
            rows = await self.db.fetch(
                "SELECT guild_id, channel_id, state FROM emote_registry_snapshots"
            )
            return [_decode_state(row["state"]) for row in rows]

        except Exception as e:
            logger.error(f"Error loading registry snapshots: {e}", exc_info=True)
            return []

    async def load_snapshot(self, guild_id: int, channel_id: int) -> Optional[dict[str, Any]]:
        """Load a single scope, or None if absent or on failure."""
        try:
            row = await self.db.fetchrow(
                """
                SELECT state FROM emote_registry_snapshots
                WHERE guild_id = $1 AND channel_id = $2
                """,
                guild_id,
                channel_id,
            )
            return _decode_state(row["state"]) if row else None

        except Exception as e:
            logger.error(f"Error loading snapshot for scope ({guild_id}, {channel_id}): {e}")
            return None
