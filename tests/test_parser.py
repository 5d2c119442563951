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

"""Tests for command parsing."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from emotes.parser import (
    MIN_SNOWFLAKE,
    AddCommand,
    HelpCommand,
    InvalidCommand,
    InvalidParameter,
    MissingParameter,
    RemoveCommand,
    StatsCommand,
    parse,
)


class TestNotACommand:
    """Text without the prefix is silently ignored."""

    def test_plain_text(self):
        assert parse("hello there") is None

    def test_empty(self):
        assert parse("") is None

    def test_prefix_mid_message(self):
        assert parse("look at this >>add Foo") is None

    def test_single_angle_bracket(self):
        assert parse(">add Foo") is None


class TestAdd:
    def test_add_with_name(self):
        assert parse(">>add FeelsBadMan") == AddCommand(name="FeelsBadMan")

    def test_name_is_trimmed(self):
        assert parse(">>add    PogChamp   ") == AddCommand(name="PogChamp")

    def test_only_first_token_is_name(self):
        assert parse(">>add Kappa extra words") == AddCommand(name="Kappa")

    def test_whitespace_after_prefix_allowed(self):
        assert parse(">> add Kappa") == AddCommand(name="Kappa")

    def test_verb_case_insensitive(self):
        assert parse(">>ADD Kappa") == AddCommand(name="Kappa")

    def test_missing_name(self):
        assert parse(">>add") == MissingParameter("add")

    def test_whitespace_only_name(self):
        assert parse(">>add    \t ") == MissingParameter("add")


class TestStatsAndHelp:
    def test_stats(self):
        assert parse(">>stats") == StatsCommand()

    def test_stats_ignores_trailing_text(self):
        assert parse(">>stats please") == StatsCommand()

    def test_help(self):
        assert parse(">>help") == HelpCommand()


class TestRemove:
    def test_message_id(self):
        message_id = 712345678901234567
        assert parse(f">>remove {message_id}") == RemoveCommand(message_id=message_id)

    def test_hash_rank(self):
        assert parse(">>remove #2") == RemoveCommand(rank=2)

    def test_small_integer_is_rank(self):
        assert parse(">>remove 3") == RemoveCommand(rank=3)

    def test_snowflake_boundary(self):
        assert parse(f">>remove {MIN_SNOWFLAKE}") == RemoveCommand(message_id=MIN_SNOWFLAKE)
        assert parse(f">>remove {MIN_SNOWFLAKE - 1}") == RemoveCommand(rank=MIN_SNOWFLAKE - 1)

    def test_missing_target(self):
        assert parse(">>remove") == MissingParameter("remove")
        assert parse(">>remove   ") == MissingParameter("remove")

    @pytest.mark.parametrize("value", ["abc", "#0", "0", "-5", "#x"])
    def test_invalid_target(self, value):
        assert parse(f">>remove {value}") == InvalidParameter("remove", value)


class TestInvalid:
    def test_unknown_verb(self):
        assert parse(">>frobnicate now") == InvalidCommand("frobnicate")

    def test_bare_prefix(self):
        assert parse(">>") == InvalidCommand("")

    def test_custom_prefix(self):
        assert parse("!add Kappa", prefix="!") == AddCommand(name="Kappa")
        assert parse(">>add Kappa", prefix="!") is None
