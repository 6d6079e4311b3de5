from uuid import uuid4

import pytest

from teamhub.models.team import TeamCreate
from teamhub.services.invitation_service import InvitationService
from teamhub.services.team_service import TeamService

from fakes import FrozenClock, InMemoryMembershipStore


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def store(clock):
    return InMemoryMembershipStore(clock)


@pytest.fixture
def team_service(store, clock):
    return TeamService(store, clock=clock)


@pytest.fixture
def invitation_service(store, team_service, clock):
    return InvitationService(
        store,
        team_service,
        clock=clock,
        ttl_days=7,
        base_url="https://app.example.com/invitations/",
    )


@pytest.fixture
def owner_id():
    return uuid4()


@pytest.fixture
def admin_id():
    return uuid4()


@pytest.fixture
def member_id():
    return uuid4()


@pytest.fixture
def outsider_id():
    return uuid4()


@pytest.fixture
async def team(team_service, owner_id):
    return await team_service.create_team(TeamCreate(name="Acme Corp"), owner_id)


@pytest.fixture
async def staffed_team(team_service, team, owner_id, admin_id, member_id):
    """Acme Corp with one owner, one admin and one member."""
    await team_service.add_member(team.id, admin_id, "admin", owner_id)
    await team_service.add_member(team.id, member_id, "member", owner_id)
    return team
