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
Vote Tally Reconciler

Turns reaction add/remove events into registry votes. Only the configured
vote symbol counts, only on registered candidate messages, and never the
bot's own seed reaction. Reactions that land on a post before its candidate
is registered are held by the registry and replayed on registration.
"""

import logging
from typing import Optional, Union

from .errors import NotFoundError
from .events import ReactionAdded, ReactionRemoved
from .registry import CandidateRegistry

logger = logging.getLogger("emotevote.reconciler")


class VoteReconciler:
    """Keeps registry tallies in step with reactions on candidate posts."""

    def __init__(
        self,
        registry: CandidateRegistry,
        vote_symbol: str,
        bot_user_id: Optional[int] = None,
    ):
        self.registry = registry
        self.vote_symbol = vote_symbol
        self.bot_user_id = bot_user_id

    def _applies(self, event: Union[ReactionAdded, ReactionRemoved]) -> bool:
        if event.emoji_symbol != self.vote_symbol:
            return False
        if self.bot_user_id is not None and event.reactor_id == self.bot_user_id:
            # The bot seeds the vote reaction on every post; it is not a ballot
            return False
        return True

    def handle(self, event: Union[ReactionAdded, ReactionRemoved]) -> Optional[int]:
        """
        Apply a reaction event.

        Returns:
            The candidate's new vote count, or None if the event was ignored
        """
        if not self._applies(event):
            logger.debug(
                f"Ignoring reaction {event.emoji_symbol!r} by {event.reactor_id} "
                f"on message {event.message_id}"
            )
            return None

        if event.message_id not in self.registry:
            added = isinstance(event, ReactionAdded)
            if self.registry.buffer_vote(event.message_id, event.reactor_id, added):
                logger.debug(f"Holding reaction on {event.message_id} until its post registers")
                return None
            if event.message_id not in self.registry:
                # Not one of our candidate posts
                return None

        try:
            if isinstance(event, ReactionAdded):
                count = self.registry.record_vote(event.message_id, event.reactor_id)
            else:
                count = self.registry.revoke_vote(event.message_id, event.reactor_id)
        except NotFoundError:
            # Removed between the membership check and the vote
            logger.debug(f"Candidate {event.message_id} vanished before vote applied")
            return None

        logger.info(
            f"{type(event).__name__} by {event.reactor_id} on candidate "
            f"{event.message_id}: {count} vote(s)"
        )
        return count
