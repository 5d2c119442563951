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
Emote Vote Package

Candidate registry, vote tallying and command dispatch for the emote
popularity vote.
"""

from .auth import CAPABILITY_ADMIN, CAPABILITY_NONE, Issuer, RoleAuthorizer
from .config import VoteConfig
from .dispatcher import CommandDispatcher, DispatchOutcome
from .errors import (
    AuthorizationError,
    DuplicateCandidateError,
    EmoteVoteError,
    InputError,
    NotFoundError,
    StateError,
)
from .parser import parse
from .reconciler import VoteReconciler
from .registry import Candidate, CandidateDraft, CandidateRegistry, StandingEntry
from .router import EventRouter
from .sink import RenderSink

__all__ = [
    "CAPABILITY_ADMIN",
    "CAPABILITY_NONE",
    "Issuer",
    "RoleAuthorizer",
    "VoteConfig",
    "CommandDispatcher",
    "DispatchOutcome",
    "AuthorizationError",
    "DuplicateCandidateError",
    "EmoteVoteError",
    "InputError",
    "NotFoundError",
    "StateError",
    "parse",
    "VoteReconciler",
    "Candidate",
    "CandidateDraft",
    "CandidateRegistry",
    "StandingEntry",
    "EventRouter",
    "RenderSink",
]
