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
Emote Vote Configuration

Command prefix, vote symbol, admin roles and submission limits.
Values can be overridden via environment variables.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

DEFAULT_ADMIN_ROLE_NAMES = frozenset({"Moderator", "admin"})


def _parse_id_set(raw: str) -> frozenset:
    """Parse a comma separated list of Discord ids, ignoring blanks."""
    return frozenset(int(part) for part in raw.split(",") if part.strip())


def _parse_name_set(raw: str) -> frozenset:
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


@dataclass
class VoteConfig:
    """Configuration for the emote vote bot."""

    # Command surface
    prefix: str = ">>"
    vote_symbol: str = "\N{THUMBS UP SIGN}"

    # Authorization
    admin_role_ids: frozenset = field(default_factory=frozenset)
    admin_role_names: frozenset = DEFAULT_ADMIN_ROLE_NAMES

    # Submission rules
    max_submissions_per_user: int = 3  # 0 disables the limit
    max_attachment_bytes: int = 6_000_000
    min_image_dimension: int = 120
    allowed_extensions: tuple = ("jpg", "jpeg", "png")

    # Persistence
    snapshot_interval_seconds: int = 300

    # Where candidates are posted (None = the channel the command came from)
    voting_channel_id: Optional[int] = None

    @classmethod
    def from_env(cls) -> "VoteConfig":
        """Create config from environment variables with defaults."""
        voting_channel = os.getenv("EMOTE_VOTING_CHANNEL_ID")
        role_names = os.getenv("EMOTE_ADMIN_ROLE_NAMES")
        return cls(
            prefix=os.getenv("EMOTE_PREFIX", ">>"),
            vote_symbol=os.getenv("EMOTE_VOTE_SYMBOL", "\N{THUMBS UP SIGN}"),
            admin_role_ids=_parse_id_set(os.getenv("EMOTE_ADMIN_ROLE_IDS", "")),
            admin_role_names=(
                _parse_name_set(role_names)
                if role_names is not None
                else DEFAULT_ADMIN_ROLE_NAMES
            ),
            max_submissions_per_user=int(os.getenv("EMOTE_MAX_SUBMISSIONS", "3")),
            max_attachment_bytes=int(
                os.getenv("EMOTE_MAX_ATTACHMENT_BYTES", "6000000")
            ),
            min_image_dimension=int(os.getenv("EMOTE_MIN_IMAGE_DIMENSION", "120")),
            snapshot_interval_seconds=int(
                os.getenv("EMOTE_SNAPSHOT_INTERVAL", "300")
            ),
            voting_channel_id=int(voting_channel) if voting_channel else None,
        )
