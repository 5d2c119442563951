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

"""Tests for reaction-to-vote reconciliation."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from emotes.events import ReactionAdded, ReactionRemoved
from emotes.registry import CandidateDraft, CandidateRegistry
from emotes.reconciler import VoteReconciler

VOTE = "\N{THUMBS UP SIGN}"
BOT_ID = 999
CANDIDATE = 555


@pytest.fixture
def registry():
    registry = CandidateRegistry()
    registry.register(
        CandidateDraft(
            message_id=CANDIDATE,
            name="FeelsBadMan",
            image_url="https://cdn.example/a.png",
            submitter_id=1,
            guild_id=10,
            channel_id=20,
        )
    )
    return registry


@pytest.fixture
def reconciler(registry):
    return VoteReconciler(registry, VOTE, bot_user_id=BOT_ID)


class TestVoteReconciler:
    def test_vote_symbol_counts(self, reconciler, registry):
        assert reconciler.handle(ReactionAdded(CANDIDATE, 2, VOTE)) == 1
        assert registry.lookup(CANDIDATE).count == 1

    def test_duplicate_delivery_counts_once(self, reconciler, registry):
        reconciler.handle(ReactionAdded(CANDIDATE, 2, VOTE))
        assert reconciler.handle(ReactionAdded(CANDIDATE, 2, VOTE)) == 1
        assert registry.lookup(CANDIDATE).count == 1

    def test_removal_revokes(self, reconciler, registry):
        reconciler.handle(ReactionAdded(CANDIDATE, 2, VOTE))
        reconciler.handle(ReactionAdded(CANDIDATE, 3, VOTE))
        assert reconciler.handle(ReactionRemoved(CANDIDATE, 2, VOTE)) == 1

    def test_other_emoji_ignored(self, reconciler, registry):
        assert reconciler.handle(ReactionAdded(CANDIDATE, 2, "\N{THUMBS DOWN SIGN}")) is None
        assert registry.lookup(CANDIDATE).count == 0

    def test_bot_seed_reaction_ignored(self, reconciler, registry):
        assert reconciler.handle(ReactionAdded(CANDIDATE, BOT_ID, VOTE)) is None
        assert registry.lookup(CANDIDATE).count == 0

    def test_unknown_message_ignored(self, reconciler):
        assert reconciler.handle(ReactionAdded(12345, 2, VOTE)) is None
        assert reconciler.handle(ReactionRemoved(12345, 2, VOTE)) is None

    def test_bot_id_unset_counts_everyone(self, registry):
        reconciler = VoteReconciler(registry, VOTE)
        assert reconciler.handle(ReactionAdded(CANDIDATE, BOT_ID, VOTE)) == 1

    def test_order_of_add_and_remove_matters(self, reconciler, registry):
        reconciler.handle(ReactionAdded(CANDIDATE, 2, VOTE))
        reconciler.handle(ReactionRemoved(CANDIDATE, 2, VOTE))
        assert registry.lookup(CANDIDATE).count == 0

        reconciler.handle(ReactionRemoved(CANDIDATE, 3, VOTE))
        reconciler.handle(ReactionAdded(CANDIDATE, 3, VOTE))
        assert registry.lookup(CANDIDATE).count == 1

    def test_candidate_removed_mid_flight(self, reconciler, registry):
        registry.remove(CANDIDATE)
        assert reconciler.handle(ReactionAdded(CANDIDATE, 2, VOTE)) is None

    def test_reaction_before_registration_is_replayed(self, reconciler, registry):
        registry.begin_post()
        assert reconciler.handle(ReactionAdded(777, 2, VOTE)) is None
        assert reconciler.handle(ReactionAdded(777, BOT_ID, VOTE)) is None
        registry.register(
            CandidateDraft(
                message_id=777,
                name="Kappa",
                image_url="https://cdn.example/b.png",
                submitter_id=1,
                guild_id=10,
                channel_id=20,
            )
        )
        registry.end_post()

        # The bot's own reaction was never held
        assert registry.lookup(777).count == 1
        assert reconciler.handle(ReactionAdded(777, 3, VOTE)) == 2
