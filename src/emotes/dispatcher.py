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
Command Dispatcher

Runs one chat message through parse -> authorize -> registry -> render.

States per message:
- unrecognized     not a command, nothing happens
- denied           well-formed but the issuer lacks the capability
- rejected_input   bad command, bad attachment, unknown target, duplicate
- failed           the candidate could not be posted, nothing committed
- registered       add succeeded
- removed          remove succeeded
- rendered         stats or help sent

Registry mutations are committed before any notification is sent. A failed
send is logged and dropped; it never undoes the mutation.
The bot seeds its vote reaction only once the candidate is registered.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from .auth import Issuer, RoleAuthorizer, required_capability
from .config import VoteConfig
from .errors import AuthorizationError, EmoteVoteError, InputError, NotFoundError, StateError
from .events import (
    Attachment,
    MessageReceived,
    PostCandidate,
    RetractCandidate,
    SeedVote,
    SendStats,
    SendText,
    StatsEntry,
)
from .parser import (
    AddCommand,
    HelpCommand,
    InvalidCommand,
    InvalidParameter,
    MissingParameter,
    RemoveCommand,
    StatsCommand,
    parse,
)
from .registry import CandidateDraft, CandidateRegistry
from .sink import RenderSink

logger = logging.getLogger("emotevote.dispatcher")

STATE_UNRECOGNIZED = "unrecognized"
STATE_DENIED = "denied"
STATE_REJECTED_INPUT = "rejected_input"
STATE_FAILED = "failed"
STATE_REGISTERED = "registered"
STATE_REMOVED = "removed"
STATE_RENDERED = "rendered"

NO_CANDIDATES_TEXT = "No candidates have been submitted yet."
POST_FAILED_TEXT = "Discord error, please try again later."


@dataclass
class DispatchOutcome:
    state: str
    candidate_id: Optional[int] = None
    message: Optional[str] = None


def help_text(prefix: str) -> str:
    return "\n".join(
        [
            "**Emote voting commands**",
            f"`{prefix}add NAME` + one attached image - submit an emote",
            f"`{prefix}stats` - ranked results (admin)",
            f"`{prefix}remove ID` - remove a candidate by message id or `#rank` (admin)",
            f"`{prefix}help` - this message",
        ]
    )


class CommandDispatcher:
    """Handles MessageReceived events."""

    def __init__(
        self,
        registry: CandidateRegistry,
        authorizer: RoleAuthorizer,
        sink: RenderSink,
        config: VoteConfig,
    ):
        self.registry = registry
        self.authorizer = authorizer
        self.sink = sink
        self.config = config

    def _voting_channel(self, event: MessageReceived) -> int:
        return self.config.voting_channel_id or event.channel_id

    # --- notification (best effort) ---

    async def _send_text(self, request: SendText) -> None:
        try:
            await self.sink.send_text(request)
        except Exception as e:
            logger.warning(
                f"Could not send message to channel {request.channel_id}: {e}", exc_info=True
            )

    async def _reply_error(self, event: MessageReceived, body: str) -> None:
        await self._send_text(
            SendText(channel_id=event.channel_id, body=body, recipient_id=event.author_id)
        )

    async def _retract(self, channel_id: int, message_id: int) -> None:
        try:
            await self.sink.retract_candidate(
                RetractCandidate(channel_id=channel_id, message_id=message_id)
            )
        except Exception as e:
            logger.warning(f"Could not retract candidate message {message_id}: {e}")

    async def _seed_vote(self, channel_id: int, message_id: int) -> None:
        try:
            await self.sink.seed_vote(SeedVote(channel_id=channel_id, message_id=message_id))
        except Exception as e:
            logger.warning(f"Could not seed vote reaction on {message_id}: {e}")

    # --- entry point ---

    async def handle(self, event: MessageReceived) -> DispatchOutcome:
        """Dispatch one message. Never raises for user-caused failures."""
        if event.guild_id is None:
            return DispatchOutcome(STATE_UNRECOGNIZED)

        result = parse(event.text, self.config.prefix)
        if result is None:
            return DispatchOutcome(STATE_UNRECOGNIZED)

        logger.info(f"User {event.author_id} issued {result!r} in channel {event.channel_id}")

        if isinstance(result, InvalidCommand):
            return await self._reject(
                event,
                InputError(
                    f"Unknown command `{result.verb}`. Try `{self.config.prefix}help`."
                ),
            )
        if isinstance(result, MissingParameter):
            return await self._reject(
                event, InputError(f"`{result.verb}` needs a parameter.")
            )
        if isinstance(result, InvalidParameter):
            return await self._reject(
                event, InputError(f"`{result.value}` is not a valid {result.verb} target.")
            )

        capability = required_capability(result)
        if not self.authorizer.authorize(Issuer.from_message(event), capability):
            error = AuthorizationError(capability)
            await self._reply_error(event, f"You are not authorized: {error}")
            return DispatchOutcome(STATE_DENIED, message=str(error))

        try:
            if isinstance(result, AddCommand):
                return await self._handle_add(event, result)
            if isinstance(result, RemoveCommand):
                return await self._handle_remove(event, result)
            if isinstance(result, StatsCommand):
                return await self._handle_stats(event)
            if isinstance(result, HelpCommand):
                await self._send_text(
                    SendText(channel_id=event.channel_id, body=help_text(self.config.prefix))
                )
                return DispatchOutcome(STATE_RENDERED)
        except StateError as e:
            logger.error(f"Registry inconsistency handling message {event.id}: {e}")
            return await self._reject(event, e, prefix="Internal error: ")
        except EmoteVoteError as e:
            return await self._reject(event, e)

        return DispatchOutcome(STATE_UNRECOGNIZED)

    async def _reject(
        self, event: MessageReceived, error: EmoteVoteError, prefix: str = ""
    ) -> DispatchOutcome:
        await self._reply_error(event, f"{prefix}{error}")
        return DispatchOutcome(STATE_REJECTED_INPUT, message=str(error))

    # --- add ---

    def _validate_attachments(self, attachments: list[Attachment]) -> Attachment:
        """Check the submission carries exactly one usable image."""
        if len(attachments) != 1:
            raise InputError("Attach exactly one image.")

        attachment = attachments[0]
        if attachment.size >= self.config.max_attachment_bytes:
            limit_mb = self.config.max_attachment_bytes / 1_000_000
            raise InputError(f"{limit_mb:g}MB is the size limit for images.")

        if attachment.width is None or attachment.height is None:
            raise InputError("Attachment is not an image.")

        minimum = self.config.min_image_dimension
        if attachment.width < minimum or attachment.height < minimum:
            raise InputError(f"Image must be at least {minimum}x{minimum}px.")

        extension = os.path.splitext(attachment.filename)[1].lstrip(".").lower()
        if not extension:
            raise InputError("Filename is not processable.")
        if extension not in self.config.allowed_extensions:
            allowed = ", ".join(ext.upper() for ext in self.config.allowed_extensions)
            raise InputError(f"{allowed} only, nothing else is allowed.")

        return attachment

    async def _handle_add(self, event: MessageReceived, command: AddCommand) -> DispatchOutcome:
        name = command.name.strip()
        if not name:
            raise InputError("No name found.")

        attachment = self._validate_attachments(event.attachments)
        channel_id = self._voting_channel(event)

        # Early answer so a member at the limit doesn't cost a post; register() decides
        self.registry.check_submission_allowed(event.guild_id, channel_id, event.author_id)

        self.registry.begin_post()
        try:
            try:
                message_id = await self.sink.post_candidate(
                    PostCandidate(
                        channel_id=channel_id,
                        name=name,
                        image_url=attachment.url,
                        submitter_name=event.author_name,
                    )
                )
            except Exception as e:
                logger.error(f"Posting candidate '{name}' failed: {e}", exc_info=True)
                await self._reply_error(event, POST_FAILED_TEXT)
                return DispatchOutcome(STATE_FAILED, message=str(e))

            draft = CandidateDraft(
                message_id=message_id,
                name=name,
                image_url=attachment.url,
                submitter_id=event.author_id,
                guild_id=event.guild_id,
                channel_id=channel_id,
                submitter_name=event.author_name,
            )
            try:
                candidate_id = self.registry.register(draft)
            except EmoteVoteError:
                # Nothing was committed; take the orphaned post down again
                await self._retract(channel_id, message_id)
                raise
        finally:
            self.registry.end_post()

        await self._seed_vote(channel_id, candidate_id)
        await self._send_text(
            SendText(
                channel_id=event.channel_id,
                body=f"Added **{name}** for voting (id `{candidate_id}`).",
            )
        )
        return DispatchOutcome(STATE_REGISTERED, candidate_id=candidate_id)

    # --- remove ---

    async def _handle_remove(
        self, event: MessageReceived, command: RemoveCommand
    ) -> DispatchOutcome:
        channel_id = self._voting_channel(event)
        candidate_id = command.message_id

        if command.rank is not None:
            standings = self.registry.snapshot_stats(event.guild_id, channel_id)
            if command.rank > len(standings):
                raise InputError(f"There is no candidate at rank {command.rank}.")
            candidate_id = standings[command.rank - 1].candidate.id

        try:
            candidate = self.registry.remove(candidate_id, scope=(event.guild_id, channel_id))
        except NotFoundError as e:
            raise InputError(str(e)) from e

        await self._retract(candidate.channel_id, candidate.id)
        await self._send_text(
            SendText(
                channel_id=event.channel_id,
                body=f"Removed **{candidate.name}** (id `{candidate.id}`).",
            )
        )
        return DispatchOutcome(STATE_REMOVED, candidate_id=candidate.id)

    # --- stats ---

    async def _handle_stats(self, event: MessageReceived) -> DispatchOutcome:
        standings = self.registry.snapshot_stats(event.guild_id, self._voting_channel(event))

        if not standings:
            await self._send_text(SendText(channel_id=event.channel_id, body=NO_CANDIDATES_TEXT))
            return DispatchOutcome(STATE_RENDERED)

        request = SendStats(
            channel_id=event.channel_id,
            entries=[
                StatsEntry(
                    name=entry.candidate.name,
                    count=entry.count,
                    submitter=entry.candidate.submitter_name,
                )
                for entry in standings
            ],
        )
        try:
            await self.sink.send_stats(request)
        except Exception as e:
            logger.warning(f"Could not send stats to channel {event.channel_id}: {e}")
        return DispatchOutcome(STATE_RENDERED)
