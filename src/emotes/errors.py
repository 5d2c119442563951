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

"""Exceptions raised by the vote core. None of them are fatal."""


class EmoteVoteError(Exception):
    """Base class for recoverable, user-reportable failures."""

    pass


class InputError(EmoteVoteError):
    """Malformed command, bad attachment, empty name or submission limit hit."""

    pass


class AuthorizationError(EmoteVoteError):
    """The issuer lacks the capability the command requires."""

    def __init__(self, capability: str):
        super().__init__(f"You need the {capability} capability for this command.")
        self.capability = capability


class NotFoundError(EmoteVoteError):
    """The referenced candidate is not registered."""

    def __init__(self, candidate_id: int):
        super().__init__(f"No candidate with id {candidate_id}.")
        self.candidate_id = candidate_id


class StateError(EmoteVoteError):
    """The registry refused an operation that would break its invariants."""

    pass


class DuplicateCandidateError(StateError):
    def __init__(self, candidate_id: int):
        super().__init__(f"Candidate {candidate_id} is already registered.")
        self.candidate_id = candidate_id
