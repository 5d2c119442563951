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

"""Outbound render sink interface. discord_bot.DiscordRenderSink implements it."""

from abc import ABC, abstractmethod

from .events import PostCandidate, RetractCandidate, SeedVote, SendStats, SendText


class RenderSink(ABC):
    """Accepts render requests. Any method may raise on transport failure."""

    @abstractmethod
    async def send_text(self, request: SendText) -> None:
        ...

    @abstractmethod
    async def send_stats(self, request: SendStats) -> None:
        ...

    @abstractmethod
    async def post_candidate(self, request: PostCandidate) -> int:
        """Post the image for voting and return the new message id."""

    @abstractmethod
    async def seed_vote(self, request: SeedVote) -> None:
        """React to a registered post with the vote symbol so members can click it."""

    @abstractmethod
    async def retract_candidate(self, request: RetractCandidate) -> None:
        ...
