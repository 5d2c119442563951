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
Authorization Check

Maps commands to the capability they need and decides whether an issuer
holds it. Role membership comes from a lookup callable so the check itself
stays free of Discord API calls.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from .config import VoteConfig
from .events import MessageReceived, RoleRef
from .parser import AddCommand, Command, HelpCommand, RemoveCommand, StatsCommand

logger = logging.getLogger("emotevote.auth")

CAPABILITY_NONE = "None"
CAPABILITY_ADMIN = "Admin"

REQUIRED_CAPABILITIES = {
    AddCommand: CAPABILITY_NONE,
    HelpCommand: CAPABILITY_NONE,
    StatsCommand: CAPABILITY_ADMIN,
    RemoveCommand: CAPABILITY_ADMIN,
}

RoleLookup = Callable[["Issuer"], Iterable[RoleRef]]


@dataclass
class Issuer:
    """Who sent a command."""

    user_id: int
    guild_id: Optional[int]
    roles: list[RoleRef] = field(default_factory=list)

    @classmethod
    def from_message(cls, event: MessageReceived) -> "Issuer":
        return cls(user_id=event.author_id, guild_id=event.guild_id, roles=list(event.roles))


def required_capability(command: Command) -> str:
    """Capability needed to run a command."""
    return REQUIRED_CAPABILITIES.get(type(command), CAPABILITY_ADMIN)


def _roles_from_issuer(issuer: Issuer) -> Iterable[RoleRef]:
    return issuer.roles


class RoleAuthorizer:
    """Grants Admin to members of a configured role (by id or by name)."""

    def __init__(self, config: VoteConfig, role_lookup: Optional[RoleLookup] = None):
        self.admin_role_ids = set(config.admin_role_ids)
        self.admin_role_names = set(config.admin_role_names)
        self.role_lookup = role_lookup or _roles_from_issuer

    def authorize(self, issuer: Issuer, capability: str) -> bool:
        """
        Check whether an issuer holds a capability.

        Args:
            issuer: Command author
            capability: CAPABILITY_NONE or CAPABILITY_ADMIN

        Returns:
            True if allowed
        """
        if capability == CAPABILITY_NONE:
            return True

        if capability != CAPABILITY_ADMIN:
            logger.warning(f"Unknown capability requested: {capability}")
            return False

        for role in self.role_lookup(issuer):
            if role.id in self.admin_role_ids or role.name in self.admin_role_names:
                return True

        logger.info(f"User {issuer.user_id} denied {capability} in guild {issuer.guild_id}")
        return False
