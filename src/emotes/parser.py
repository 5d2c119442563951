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
Command Parser Module

Turns raw message text into a command. Supports:
- ">>add NAME"     submit the attached image as NAME
- ">>stats"        ranked tally (admin)
- ">>remove ID"    drop a candidate by message id, or "#N" / N for rank N (admin)
- ">>help"         command overview

Text without the prefix is not a command and parses to None. Everything else
parses to one of the result dataclasses below; parsing never raises.
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

DEFAULT_PREFIX = ">>"

# Discord snowflakes embed a timestamp shifted left by 22 bits, so any real
# message id is at least this large. Smaller integers are standings ranks.
MIN_SNOWFLAKE = 1 << 22

_RANK_PATTERN = re.compile(r"^#(\d+)$")


@dataclass
class AddCommand:
    name: str


@dataclass
class StatsCommand:
    pass


@dataclass
class RemoveCommand:
    message_id: Optional[int] = None
    rank: Optional[int] = None  # 1-based position in the current standings


@dataclass
class HelpCommand:
    pass


@dataclass
class InvalidCommand:
    """Prefix present but the verb is unknown."""

    verb: str


@dataclass
class MissingParameter:
    verb: str


@dataclass
class InvalidParameter:
    verb: str
    value: str


Command = Union[AddCommand, StatsCommand, RemoveCommand, HelpCommand]
ParseResult = Union[Command, InvalidCommand, MissingParameter, InvalidParameter]

VERBS = ("add", "stats", "remove", "help")


def _parse_remove_target(param: str) -> Union[RemoveCommand, InvalidParameter]:
    match = _RANK_PATTERN.match(param)
    if match:
        rank = int(match.group(1))
        if rank < 1:
            return InvalidParameter("remove", param)
        return RemoveCommand(rank=rank)

    if not param.isdigit():
        return InvalidParameter("remove", param)

    value = int(param)
    if value >= MIN_SNOWFLAKE:
        return RemoveCommand(message_id=value)
    if value < 1:
        return InvalidParameter("remove", param)
    return RemoveCommand(rank=value)


def parse(text: str, prefix: str = DEFAULT_PREFIX) -> Optional[ParseResult]:
    """
    Parse a chat message into a command.

    Args:
        text: Raw message content
        prefix: Command prefix

    Returns:
        None when the text does not start with the prefix, otherwise a
        command or one of InvalidCommand / MissingParameter / InvalidParameter
    """
    if not text or not prefix:
        return None

    stripped = text.lstrip()
    if not stripped.startswith(prefix):
        return None

    body = stripped[len(prefix):].strip()
    parts = body.split(None, 1)
    if not parts:
        return InvalidCommand("")

    verb = parts[0].lower()
    param = parts[1].strip() if len(parts) > 1 else ""

    if verb == "add":
        if not param:
            return MissingParameter("add")
        # Emote names are single tokens; anything after the first is ignored
        return AddCommand(name=param.split()[0])

    if verb == "stats":
        return StatsCommand()

    if verb == "help":
        return HelpCommand()

    if verb == "remove":
        if not param:
            return MissingParameter("remove")
        return _parse_remove_target(param.split()[0])

    return InvalidCommand(verb)
