"""Pure permission decisions for team operations.

Nothing here performs I/O or raises. Callers look up the actor's membership,
call `can`, and turn a `False` into `Forbidden` once they have established
that the team (and any target) exists.
"""

from enum import Enum
from typing import Optional

from teamhub.models.role import TeamRole


class Action(str, Enum):
    READ_TEAM = "read_team"
    UPDATE_TEAM = "update_team"
    DELETE_TEAM = "delete_team"
    LIST_MEMBERS = "list_members"
    ADD_MEMBER = "add_member"
    CHANGE_ROLE = "change_role"
    REMOVE_MEMBER = "remove_member"
    INVITE = "invite"
    LIST_INVITATIONS = "list_invitations"
    DELETE_INVITATION = "delete_invitation"
    CHANGE_SUBSCRIPTION = "change_subscription"


MANAGERS = frozenset({TeamRole.OWNER, TeamRole.ADMIN})

_ANY_MEMBER = frozenset({Action.READ_TEAM, Action.LIST_MEMBERS, Action.LIST_INVITATIONS})
_OWNER_ONLY = frozenset({Action.DELETE_TEAM, Action.CHANGE_SUBSCRIPTION})
_MANAGERS_ONLY = frozenset({Action.UPDATE_TEAM, Action.DELETE_INVITATION})


def can(
    actor_role: Optional[TeamRole],
    action: Action,
    target_role: Optional[TeamRole] = None,
    *,
    new_role: Optional[TeamRole] = None,
    is_self: bool = False,
    target_is_sole_owner: bool = False,
) -> bool:
    """Decide whether an actor holding `actor_role` may perform `action`.

    `actor_role` is None when the actor has no membership in the team.
    For INVITE and ADD_MEMBER the role being granted is passed as
    `target_role`. For CHANGE_ROLE `target_role` is the target's current role
    and `new_role` the requested one. For REMOVE_MEMBER `target_role` is the
    target's role, `is_self` marks self-removal, and `target_is_sole_owner`
    marks a target who is the team's only owner.
    """
    if actor_role is None:
        return False

    if action in _ANY_MEMBER:
        return True

    if action in _OWNER_ONLY:
        return actor_role is TeamRole.OWNER

    if action in _MANAGERS_ONLY:
        return actor_role in MANAGERS

    if action in (Action.INVITE, Action.ADD_MEMBER):
        return _can_grant(actor_role, target_role)

    if action is Action.CHANGE_ROLE:
        return _can_change_role(actor_role, target_role, new_role)

    if action is Action.REMOVE_MEMBER:
        return _can_remove(actor_role, target_role, is_self, target_is_sole_owner)

    return False


def _can_grant(actor_role: TeamRole, role: Optional[TeamRole]) -> bool:
    return role is not None and actor_role.can_assign(role)


def _can_change_role(
    actor_role: TeamRole,
    target_role: Optional[TeamRole],
    new_role: Optional[TeamRole],
) -> bool:
    if actor_role is TeamRole.OWNER:
        return True
    if actor_role is not TeamRole.ADMIN:
        return False
    # Admins only ever set member, and never on an owner.
    return new_role is TeamRole.MEMBER and target_role is not TeamRole.OWNER


def _can_remove(
    actor_role: TeamRole,
    target_role: Optional[TeamRole],
    is_self: bool,
    target_is_sole_owner: bool,
) -> bool:
    if is_self:
        return not target_is_sole_owner
    if actor_role is TeamRole.OWNER:
        return True
    if actor_role is TeamRole.ADMIN:
        return target_role is TeamRole.MEMBER
    return False
