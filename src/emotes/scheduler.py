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
Snapshot Scheduler

Background loop that writes changed registry scopes to the store.
Uses discord.ext.tasks; the interval comes from VoteConfig.
"""

import logging

from discord.ext import tasks

from .registry import CandidateRegistry
from .store import RegistryStore

logger = logging.getLogger("emotevote.scheduler")


class SnapshotScheduler:
    """Periodically flushes dirty registry scopes to the database."""

    def __init__(self, registry: CandidateRegistry, store: RegistryStore, interval_seconds: int = 300):
        self.registry = registry
        self.store = store
        self._started = False
        self._flush_loop.change_interval(seconds=interval_seconds)

    def start(self) -> None:
        """Start the flush loop."""
        if not self._started:
            self._flush_loop.start()
            self._started = True
            logger.info("Snapshot scheduler started")

    def stop(self) -> None:
        """Stop the flush loop."""
        if self._started:
            self._flush_loop.cancel()
            self._started = False
            logger.info("Snapshot scheduler stopped")

    async def flush(self) -> int:
        """
        Save every changed scope. Failed scopes stay dirty for the next run.

        Returns:
            Number of scopes written
        """
        written = 0
        for state in self.registry.drain_dirty():
            if await self.store.save_snapshot(state):
                written += 1
            else:
                self.registry.mark_dirty(state["guild_id"], state["channel_id"])

        if written:
            logger.info(f"Flushed {written} registry scope(s)")
        return written

    @tasks.loop(seconds=300)
    async def _flush_loop(self) -> None:
        try:
            await self.flush()
        except Exception as e:
            logger.error(f"Error in snapshot scheduler loop: {e}", exc_info=True)
