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
Event Router

Single consumer of the inbound event stream. Each event type maps to one
handler:
- MessageReceived  -> CommandDispatcher (as a task, since it waits on sends)
- ReactionAdded    -> VoteReconciler (inline)
- ReactionRemoved  -> VoteReconciler (inline)
- MessageDeleted   -> CandidateRegistry.invalidate (inline)

Reaction and deletion handling never awaits, so votes for a candidate are
applied strictly in arrival order. A failure in one event is logged and the
loop moves on.
"""

import asyncio
import logging
from typing import Optional, Union

from .dispatcher import STATE_UNRECOGNIZED, CommandDispatcher
from .events import MessageDeleted, MessageReceived, ReactionAdded, ReactionRemoved
from .reconciler import VoteReconciler
from .registry import CandidateRegistry

logger = logging.getLogger("emotevote.router")

InboundEvent = Union[MessageReceived, ReactionAdded, ReactionRemoved, MessageDeleted]


class EventRouter:
    """Feeds gateway events into the vote core in arrival order."""

    def __init__(
        self,
        registry: CandidateRegistry,
        dispatcher: CommandDispatcher,
        reconciler: VoteReconciler,
    ):
        self.registry = registry
        self.dispatcher = dispatcher
        self.reconciler = reconciler
        self.queue: asyncio.Queue = asyncio.Queue()
        self._tasks: set[asyncio.Task] = set()
        self._runner: Optional[asyncio.Task] = None

    def submit(self, event: InboundEvent) -> None:
        """Enqueue an event from a gateway callback."""
        self.queue.put_nowait(event)

    async def _handle_message(self, event: MessageReceived) -> None:
        try:
            outcome = await self.dispatcher.handle(event)
            if outcome.state != STATE_UNRECOGNIZED:
                logger.debug(f"Message {event.id} -> {outcome.state}")
        except Exception as e:
            logger.error(f"Error dispatching message {event.id}: {e}", exc_info=True)

    async def handle(self, event: InboundEvent) -> None:
        """Route one event. Message handling runs as a background task."""
        try:
            if isinstance(event, MessageReceived):
                task = asyncio.create_task(self._handle_message(event))
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
            elif isinstance(event, (ReactionAdded, ReactionRemoved)):
                self.reconciler.handle(event)
            elif isinstance(event, MessageDeleted):
                candidate = self.registry.invalidate(event.message_id)
                if candidate:
                    logger.info(
                        f"Candidate {candidate.id} '{candidate.name}' invalidated by deletion"
                    )
            else:
                logger.warning(f"Unhandled event type: {type(event).__name__}")
        except Exception as e:
            logger.error(f"Error handling {type(event).__name__}: {e}", exc_info=True)

    async def run(self) -> None:
        """Consume the queue until a None sentinel arrives."""
        logger.info("Event router started")
        while True:
            event = await self.queue.get()
            try:
                if event is None:
                    break
                await self.handle(event)
            finally:
                self.queue.task_done()
        logger.info("Event router stopped")

    def start(self) -> None:
        if self._runner is None or self._runner.done():
            self._runner = asyncio.create_task(self.run())

    async def stop(self) -> None:
        """Drain queued events, stop the loop and wait for in-flight commands."""
        if self._runner is not None and not self._runner.done():
            self.queue.put_nowait(None)
            await self._runner
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
