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

"""Shared test helpers."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from emotes.auth import RoleAuthorizer
from emotes.config import VoteConfig
from emotes.dispatcher import CommandDispatcher
from emotes.events import Attachment, MessageReceived, RoleRef
from emotes.registry import CandidateRegistry
from emotes.sink import RenderSink

GUILD = 10
CHANNEL = 20
ADMIN_ROLE = RoleRef(id=1, name="admin")
FIRST_POST_ID = 800_000_000_000_000_000


class FakeSink(RenderSink):
    """Records render requests; can be told to fail."""

    def __init__(self):
        self.texts = []
        self.stats = []
        self.posts = []
        self.retracted = []
        self.seeded = []
        self.fail_sends = False
        self.fail_posts = False
        self._next_id = FIRST_POST_ID

    async def send_text(self, request):
        if self.fail_sends:
            raise ConnectionError("gateway gone")
        self.texts.append(request)

    async def send_stats(self, request):
        if self.fail_sends:
            raise ConnectionError("gateway gone")
        self.stats.append(request)

    async def post_candidate(self, request):
        if self.fail_posts:
            raise ConnectionError("gateway gone")
        self.posts.append(request)
        self._next_id += 1
        return self._next_id

    async def seed_vote(self, request):
        if self.fail_sends:
            raise ConnectionError("gateway gone")
        self.seeded.append(request)

    async def retract_candidate(self, request):
        self.retracted.append(request)


def image(filename="emote.png", size=50_000, width=128, height=128):
    return Attachment(
        url=f"https://cdn.example/{filename}",
        filename=filename,
        size=size,
        width=width,
        height=height,
    )


def message(text, author_id=2, attachments=None, roles=None, guild_id=GUILD, message_id=1):
    return MessageReceived(
        id=message_id,
        author_id=author_id,
        guild_id=guild_id,
        channel_id=CHANNEL,
        text=text,
        attachments=attachments if attachments is not None else [],
        roles=roles if roles is not None else [],
        author_name=f"user{author_id}",
    )


def admin_message(text, **kwargs):
    return message(text, author_id=3, roles=[ADMIN_ROLE], **kwargs)


@pytest.fixture
def config():
    return VoteConfig()


@pytest.fixture
def registry(config):
    return CandidateRegistry(config.max_submissions_per_user)


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def dispatcher(registry, sink, config):
    return CommandDispatcher(registry, RoleAuthorizer(config), sink, config)
