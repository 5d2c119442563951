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
Gateway events consumed by the vote core and render requests it produces.

These are transport-neutral: discord_bot.py builds them from discord.py
objects, and the tests build them by hand.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class RoleRef:
    """A role held by a message author."""

    id: int
    name: str = ""


@dataclass
class Attachment:
    """An uploaded file. The core never downloads it."""

    url: str
    filename: str
    size: int = 0
    width: Optional[int] = None  # None when the file is not an image
    height: Optional[int] = None


# --- Inbound ---


@dataclass
class MessageReceived:
    id: int
    author_id: int
    guild_id: Optional[int]  # None for DMs
    channel_id: int
    text: str
    attachments: list[Attachment] = field(default_factory=list)
    roles: list[RoleRef] = field(default_factory=list)
    author_name: str = ""


@dataclass
class ReactionAdded:
    message_id: int
    reactor_id: int
    emoji_symbol: str


@dataclass
class ReactionRemoved:
    message_id: int
    reactor_id: int
    emoji_symbol: str


@dataclass
class MessageDeleted:
    """A message vanished from the platform (deleted by a moderator etc.)."""

    message_id: int


# --- Outbound ---


@dataclass
class SendText:
    """Plain text reply. With a recipient the sink tries a DM first."""

    channel_id: int
    body: str
    recipient_id: Optional[int] = None


@dataclass
class StatsEntry:
    name: str
    count: int
    submitter: str = ""


@dataclass
class SendStats:
    channel_id: int
    entries: list[StatsEntry] = field(default_factory=list)


@dataclass
class PostCandidate:
    """Post a submitted image for voting; the sink returns the new message id."""

    channel_id: int
    name: str
    image_url: str
    submitter_name: str = ""


@dataclass
class RetractCandidate:
    """Delete a previously posted candidate message."""

    channel_id: int
    message_id: int


@dataclass
class SeedVote:
    """Add the bot's own vote reaction to a registered candidate post."""

    channel_id: int
    message_id: int
