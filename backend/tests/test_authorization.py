import pytest

from teamhub.models.role import TeamRole
from teamhub.services.authorization import Action, can

OWNER, ADMIN, MEMBER = TeamRole.OWNER, TeamRole.ADMIN, TeamRole.MEMBER


@pytest.mark.parametrize("action", list(Action))
def test_non_members_can_do_nothing(action):
    assert not can(None, action, MEMBER, new_role=MEMBER)


@pytest.mark.parametrize("role", list(TeamRole))
@pytest.mark.parametrize(
    "action", [Action.READ_TEAM, Action.LIST_MEMBERS, Action.LIST_INVITATIONS]
)
def test_any_member_can_read(role, action):
    assert can(role, action)


@pytest.mark.parametrize(
    "action,allowed",
    [
        (Action.UPDATE_TEAM, {OWNER, ADMIN}),
        (Action.DELETE_INVITATION, {OWNER, ADMIN}),
        (Action.DELETE_TEAM, {OWNER}),
        (Action.CHANGE_SUBSCRIPTION, {OWNER}),
    ],
)
def test_team_level_actions(action, allowed):
    for role in TeamRole:
        assert can(role, action) == (role in allowed), role


@pytest.mark.parametrize("action", [Action.INVITE, Action.ADD_MEMBER])
def test_granting_roles(action):
    assert can(OWNER, action, OWNER)
    assert can(OWNER, action, ADMIN)
    assert can(ADMIN, action, ADMIN)
    assert can(ADMIN, action, MEMBER)
    assert not can(ADMIN, action, OWNER)
    assert not can(MEMBER, action, MEMBER)


def test_owner_changes_any_role():
    for target in TeamRole:
        for new_role in TeamRole:
            assert can(OWNER, Action.CHANGE_ROLE, target, new_role=new_role)


def test_admin_only_demotes_to_member():
    assert can(ADMIN, Action.CHANGE_ROLE, MEMBER, new_role=MEMBER)
    assert not can(ADMIN, Action.CHANGE_ROLE, MEMBER, new_role=ADMIN)
    assert not can(ADMIN, Action.CHANGE_ROLE, MEMBER, new_role=OWNER)
    assert not can(ADMIN, Action.CHANGE_ROLE, OWNER, new_role=MEMBER)


def test_admin_demotes_peer_admins():
    assert can(ADMIN, Action.CHANGE_ROLE, ADMIN, new_role=MEMBER)
    assert not can(ADMIN, Action.CHANGE_ROLE, MEMBER, new_role=OWNER)


def test_member_cannot_change_roles():
    assert not can(MEMBER, Action.CHANGE_ROLE, MEMBER, new_role=MEMBER)


def test_removal_rules():
    assert can(OWNER, Action.REMOVE_MEMBER, OWNER)
    assert can(OWNER, Action.REMOVE_MEMBER, ADMIN)
    assert can(ADMIN, Action.REMOVE_MEMBER, MEMBER)
    assert not can(ADMIN, Action.REMOVE_MEMBER, ADMIN)
    assert not can(ADMIN, Action.REMOVE_MEMBER, OWNER)
    assert not can(MEMBER, Action.REMOVE_MEMBER, MEMBER)


@pytest.mark.parametrize("role", list(TeamRole))
def test_anyone_may_leave(role):
    assert can(role, Action.REMOVE_MEMBER, role, is_self=True)


def test_sole_owner_may_not_leave():
    assert not can(
        OWNER, Action.REMOVE_MEMBER, OWNER, is_self=True, target_is_sole_owner=True
    )


def test_role_ranks():
    assert OWNER.rank > ADMIN.rank > MEMBER.rank
    assert ADMIN.can_assign(MEMBER)
    assert not ADMIN.can_assign(OWNER)
    assert not MEMBER.can_assign(MEMBER)
