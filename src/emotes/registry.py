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
Candidate Registry

Owns every submitted emote candidate and its vote tally, partitioned by
(guild_id, channel_id) scope. A candidate is identified by the id of the
message that carries its image.

Concurrency:
- Each scope has its own lock; every read and write of a scope holds it.
- A global index maps candidate id -> scope. It is only touched while the
  owning scope's lock is held, and its own lock is always taken second.
- All operations are synchronous and in-memory, so callers on the event
  loop apply them in the order their events arrived.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

import pytz

from .errors import DuplicateCandidateError, InputError, NotFoundError

logger = logging.getLogger("emotevote.registry")

Scope = tuple[int, int]  # (guild_id, channel_id)


@dataclass(frozen=True)
class Candidate:
    """A submitted emote. Immutable once registered."""

    id: int  # Message id of the posted image
    name: str
    image_url: str
    submitter_id: int
    guild_id: int
    channel_id: int
    created_at: datetime
    submitter_name: str = ""

    @property
    def scope(self) -> Scope:
        return (self.guild_id, self.channel_id)


@dataclass
class CandidateDraft:
    """Everything needed to register a candidate once its message is posted."""

    message_id: int
    name: str
    image_url: str
    submitter_id: int
    guild_id: int
    channel_id: int
    submitter_name: str = ""
    created_at: Optional[datetime] = None


@dataclass
class VoteTally:
    """Distinct voters for one candidate. The set is the source of truth."""

    voters: set = field(default_factory=set)

    @property
    def count(self) -> int:
        return len(self.voters)


@dataclass
class StandingEntry:
    candidate: Candidate
    count: int


class _ScopeState:
    def __init__(self):
        self.lock = threading.RLock()
        self.entries: dict[int, tuple[Candidate, VoteTally]] = {}
        self.dirty = False


def _standing_key(entry: StandingEntry):
    # Most votes first, then earliest submission, then lowest id
    return (-entry.count, entry.candidate.created_at, entry.candidate.id)


class CandidateRegistry:
    """
    In-memory candidate registry with per-scope locking.

    Constructed empty at startup or filled with restore_state() from a
    persisted snapshot.
    """

    def __init__(self, max_submissions_per_user: int = 0):
        self.max_submissions_per_user = max_submissions_per_user
        self._scopes: dict[Scope, _ScopeState] = {}
        self._scopes_lock = threading.Lock()
        self._index: dict[int, Scope] = {}
        self._index_lock = threading.Lock()
        # Reactions that arrive on a post before its candidate is registered
        self._pending_posts = 0
        self._early_votes: dict[int, list[tuple[int, bool]]] = {}
        self._pending_lock = threading.Lock()

    # --- internals ---

    def _scope_state(self, scope: Scope) -> _ScopeState:
        with self._scopes_lock:
            state = self._scopes.get(scope)
            if state is None:
                state = _ScopeState()
                self._scopes[scope] = state
            return state

    def _locate(self, candidate_id: int) -> Optional[_ScopeState]:
        with self._index_lock:
            scope = self._index.get(candidate_id)
        if scope is None:
            return None
        return self._scope_state(scope)

    def _submissions_locked(self, state: _ScopeState, submitter_id: int) -> int:
        return sum(
            1 for candidate, _ in state.entries.values() if candidate.submitter_id == submitter_id
        )

    def _check_limit_locked(self, state: _ScopeState, submitter_id: int) -> None:
        if self.max_submissions_per_user <= 0:
            return
        if self._submissions_locked(state, submitter_id) >= self.max_submissions_per_user:
            raise InputError(f"You can only have {self.max_submissions_per_user} suggestions.")

    def check_submission_allowed(self, guild_id: int, channel_id: int, submitter_id: int) -> None:
        """
        Raise InputError if the submitter is at the limit in this scope.

        register() repeats the check under the scope lock; this is only an
        early answer.
        """
        state = self._scope_state((guild_id, channel_id))
        with state.lock:
            self._check_limit_locked(state, submitter_id)

    # --- posts in flight ---

    def begin_post(self) -> None:
        """A candidate message is being posted; hold reactions on unknown ids."""
        with self._pending_lock:
            self._pending_posts += 1

    def end_post(self) -> None:
        """The post finished (registered or not). Drop held reactions when idle."""
        with self._pending_lock:
            self._pending_posts = max(0, self._pending_posts - 1)
            if self._pending_posts == 0 and self._early_votes:
                logger.debug(f"Discarding early reactions on {len(self._early_votes)} message(s)")
                self._early_votes.clear()

    def buffer_vote(self, message_id: int, voter_id: int, added: bool) -> bool:
        """
        Hold a vote on an unregistered message while a post is in flight.

        The held votes are replayed, in order, if register() later claims the
        message id.

        Returns:
            True if the vote was held, False if no post is in flight or the
            message is already registered
        """
        with self._pending_lock:
            if self._pending_posts == 0 or message_id in self:
                return False
            self._early_votes.setdefault(message_id, []).append((voter_id, added))
            return True

    # --- mutations ---

    def register(self, draft: CandidateDraft) -> int:
        """
        Register a posted candidate with an empty tally.

        Args:
            draft: Candidate details, keyed by its hosting message id

        Returns:
            The candidate id

        Raises:
            DuplicateCandidateError: The message id is already registered
            InputError: The submitter is at the submission limit
        """
        name = draft.name.strip()
        if not name:
            raise InputError("Candidate name must not be empty.")

        scope = (draft.guild_id, draft.channel_id)
        state = self._scope_state(scope)
        with state.lock:
            self._check_limit_locked(state, draft.submitter_id)

            # Check and claim the id in one step; ids are unique across scopes
            with self._index_lock:
                if draft.message_id in self._index:
                    raise DuplicateCandidateError(draft.message_id)
                self._index[draft.message_id] = scope

            candidate = Candidate(
                id=draft.message_id,
                name=name,
                image_url=draft.image_url,
                submitter_id=draft.submitter_id,
                guild_id=draft.guild_id,
                channel_id=draft.channel_id,
                created_at=draft.created_at or datetime.now(pytz.UTC),
                submitter_name=draft.submitter_name,
            )
            tally = VoteTally()
            with self._pending_lock:
                early = self._early_votes.pop(candidate.id, [])
            for voter_id, added in early:
                if added:
                    tally.voters.add(voter_id)
                else:
                    tally.voters.discard(voter_id)

            state.entries[candidate.id] = (candidate, tally)
            state.dirty = True

        logger.info(
            f"Registered candidate {candidate.id} '{candidate.name}' "
            f"from user {candidate.submitter_id} in scope {scope}"
            + (f", replayed {len(early)} early reaction(s)" if early else "")
        )
        return candidate.id

    def remove(self, candidate_id: int, scope: Optional[Scope] = None) -> Candidate:
        """
        Remove a candidate and its tally together.

        Args:
            candidate_id: Candidate message id
            scope: When given, the candidate must belong to this scope

        Raises:
            NotFoundError: The candidate is not registered (in that scope)
        """
        state = self._locate(candidate_id)
        if state is None:
            raise NotFoundError(candidate_id)

        with state.lock:
            entry = state.entries.get(candidate_id)
            if entry is None or (scope is not None and entry[0].scope != tuple(scope)):
                raise NotFoundError(candidate_id)
            del state.entries[candidate_id]
            with self._index_lock:
                self._index.pop(candidate_id, None)
            state.dirty = True

        candidate, tally = entry
        logger.info(
            f"Removed candidate {candidate_id} '{candidate.name}' with {tally.count} vote(s)"
        )
        return candidate

    def invalidate(self, candidate_id: int) -> Optional[Candidate]:
        """Drop a candidate whose message was deleted externally, if known."""
        try:
            return self.remove(candidate_id)
        except NotFoundError:
            return None

    def record_vote(self, candidate_id: int, voter_id: int) -> int:
        """
        Add a voter to a candidate's tally. Repeat votes are no-ops.

        Returns:
            The vote count after the call

        Raises:
            NotFoundError: The candidate is not registered
        """
        state = self._locate(candidate_id)
        if state is None:
            raise NotFoundError(candidate_id)

        with state.lock:
            entry = state.entries.get(candidate_id)
            if entry is None:
                raise NotFoundError(candidate_id)
            tally = entry[1]
            if voter_id not in tally.voters:
                tally.voters.add(voter_id)
                state.dirty = True
            return tally.count

    def revoke_vote(self, candidate_id: int, voter_id: int) -> int:
        """
        Remove a voter from a candidate's tally. Unknown voters are no-ops.

        Returns:
            The vote count after the call

        Raises:
            NotFoundError: The candidate is not registered
        """
        state = self._locate(candidate_id)
        if state is None:
            raise NotFoundError(candidate_id)

        with state.lock:
            entry = state.entries.get(candidate_id)
            if entry is None:
                raise NotFoundError(candidate_id)
            tally = entry[1]
            if voter_id in tally.voters:
                tally.voters.discard(voter_id)
                state.dirty = True
            return tally.count

    # --- reads ---

    def lookup(self, candidate_id: int) -> Optional[StandingEntry]:
        """Current candidate and vote count, or None."""
        state = self._locate(candidate_id)
        if state is None:
            return None
        with state.lock:
            entry = state.entries.get(candidate_id)
            if entry is None:
                return None
            return StandingEntry(candidate=entry[0], count=entry[1].count)

    def __contains__(self, candidate_id: int) -> bool:
        with self._index_lock:
            return candidate_id in self._index

    def submission_count(self, guild_id: int, channel_id: int, submitter_id: int) -> int:
        """Live candidates a member has in a scope."""
        state = self._scope_state((guild_id, channel_id))
        with state.lock:
            return self._submissions_locked(state, submitter_id)

    def snapshot_stats(self, guild_id: int, channel_id: int) -> list[StandingEntry]:
        """
        Ranked standings for a scope.

        Ordered by vote count descending, then submission time ascending,
        then candidate id, so the order is total and reproducible.
        """
        state = self._scope_state((guild_id, channel_id))
        with state.lock:
            standings = [
                StandingEntry(candidate=candidate, count=tally.count)
                for candidate, tally in state.entries.values()
            ]
        standings.sort(key=_standing_key)
        return standings

    # --- persistence shape ---

    def export_state(self, guild_id: int, channel_id: int) -> dict[str, Any]:
        """JSON-serializable state of one scope."""
        state = self._scope_state((guild_id, channel_id))
        with state.lock:
            return self._export_locked((guild_id, channel_id), state)

    def _export_locked(self, scope: Scope, state: _ScopeState) -> dict[str, Any]:
        candidates = []
        for candidate, tally in state.entries.values():
            candidates.append(
                {
                    "id": candidate.id,
                    "name": candidate.name,
                    "image_url": candidate.image_url,
                    "submitter_id": candidate.submitter_id,
                    "submitter_name": candidate.submitter_name,
                    "created_at": candidate.created_at.isoformat(),
                    "voters": sorted(tally.voters),
                }
            )
        return {"guild_id": scope[0], "channel_id": scope[1], "candidates": candidates}

    def drain_dirty(self) -> list[dict[str, Any]]:
        """Export every scope changed since the last drain and mark it clean."""
        with self._scopes_lock:
            scopes = list(self._scopes.items())

        exported = []
        for scope, state in scopes:
            with state.lock:
                if state.dirty:
                    exported.append(self._export_locked(scope, state))
                    state.dirty = False
        return exported

    def mark_dirty(self, guild_id: int, channel_id: int) -> None:
        """Flag a scope for the next drain (e.g. after a failed save)."""
        state = self._scope_state((guild_id, channel_id))
        with state.lock:
            state.dirty = True

    @staticmethod
    def _parse_record(
        raw: dict[str, Any], guild_id: int, channel_id: int
    ) -> tuple[Candidate, VoteTally]:
        created_at = datetime.fromisoformat(raw["created_at"])
        if created_at.tzinfo is None:
            created_at = pytz.UTC.localize(created_at)

        candidate = Candidate(
            id=int(raw["id"]),
            name=raw["name"],
            image_url=raw.get("image_url", ""),
            submitter_id=int(raw["submitter_id"]),
            guild_id=guild_id,
            channel_id=channel_id,
            created_at=created_at,
            submitter_name=raw.get("submitter_name", ""),
        )
        return candidate, VoteTally(voters={int(v) for v in raw.get("voters", [])})

    def restore_state(self, snapshot: dict[str, Any]) -> int:
        """
        Load one exported scope. Candidates already present are skipped.

        Returns:
            Number of candidates restored
        """
        guild_id = int(snapshot["guild_id"])
        channel_id = int(snapshot["channel_id"])
        scope = (guild_id, channel_id)
        state = self._scope_state(scope)
        restored = 0

        with state.lock:
            for raw in snapshot.get("candidates", []):
                try:
                    candidate, tally = self._parse_record(raw, guild_id, channel_id)
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning(f"Skipping malformed candidate record {raw!r}: {e}")
                    continue

                # Claim the id only once the record is fully parsed
                with self._index_lock:
                    if candidate.id in self._index:
                        logger.warning(f"Skipping duplicate candidate {candidate.id} on restore")
                        continue
                    self._index[candidate.id] = scope
                state.entries[candidate.id] = (candidate, tally)
                restored += 1

        logger.info(f"Restored {restored} candidate(s) into scope {scope}")
        return restored
