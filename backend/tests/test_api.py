from uuid import UUID, uuid4

import pytest
from fastapi import Header
from fastapi.testclient import TestClient

from teamhub.db.database import get_membership_store
from teamhub.db.store import StoreUnavailable
from teamhub.api.dependencies import get_current_user_email, get_current_user_id
from teamhub.main import app

from fakes import InMemoryMembershipStore


def current_user_id(x_user_id: str = Header(...)) -> UUID:
    return UUID(x_user_id)


def current_user_email(x_user_email: str = Header(None)):
    return x_user_email


@pytest.fixture
def api_store():
    return InMemoryMembershipStore()


@pytest.fixture
def client(api_store):
    app.dependency_overrides[get_membership_store] = lambda: api_store
    app.dependency_overrides[get_current_user_id] = current_user_id
    app.dependency_overrides[get_current_user_email] = current_user_email
    yield TestClient(app)
    app.dependency_overrides.clear()


def as_user(user_id, email=None):
    headers = {"X-User-Id": str(user_id)}
    if email:
        headers["X-User-Email"] = email
    return headers


@pytest.fixture
def owner():
    return uuid4()


@pytest.fixture
def team_id(client, owner):
    response = client.post("/api/teams", json={"name": "Acme"}, headers=as_user(owner))
    assert response.status_code == 200
    return response.json()["id"]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_create_and_get_team(client, owner, team_id):
    response = client.get(f"/api/teams/{team_id}", headers=as_user(owner))

    assert response.status_code == 200
    body = response.json()
    assert body["slug"] == "acme"
    assert body["owner_id"] == str(owner)
    assert body["subscription_tier"] == "free"


def test_list_my_teams(client, owner, team_id):
    response = client.get("/api/teams", headers=as_user(owner))
    assert [team["id"] for team in response.json()] == [team_id]


def test_get_team_by_slug(client, owner, team_id):
    response = client.get("/api/teams/by-slug/acme", headers=as_user(owner))
    assert response.json()["id"] == team_id


def test_outsider_is_forbidden(client, team_id):
    response = client.get(f"/api/teams/{team_id}", headers=as_user(uuid4()))

    assert response.status_code == 403
    assert response.json() == {
        "detail": "You do not have permission to perform this action",
        "code": "forbidden",
    }


def test_missing_team(client, owner):
    response = client.get(f"/api/teams/{uuid4()}", headers=as_user(owner))
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


def test_malformed_body_is_validation_error(client, owner):
    response = client.post("/api/teams", json={"name": ""}, headers=as_user(owner))
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


def test_unknown_role(client, owner, team_id):
    response = client.post(
        f"/api/teams/{team_id}/members",
        json={"user_id": str(uuid4()), "role": "superuser"},
        headers=as_user(owner),
    )
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_role"


def test_member_management(client, owner, team_id):
    member = uuid4()
    added = client.post(
        f"/api/teams/{team_id}/members",
        json={"user_id": str(member)},
        headers=as_user(owner),
    )
    assert added.status_code == 200
    assert added.json()["role"] == "member"

    promoted = client.patch(
        f"/api/teams/{team_id}/members/{member}",
        json={"role": "admin"},
        headers=as_user(owner),
    )
    assert promoted.json()["role"] == "admin"

    members = client.get(f"/api/teams/{team_id}/members", headers=as_user(member))
    assert {m["role"] for m in members.json()} == {"owner", "admin"}

    removed = client.delete(
        f"/api/teams/{team_id}/members/{member}", headers=as_user(owner)
    )
    assert removed.status_code == 200


def test_sole_owner_cannot_leave(client, owner, team_id):
    response = client.delete(
        f"/api/teams/{team_id}/members/{owner}", headers=as_user(owner)
    )
    assert response.status_code == 400
    assert response.json()["code"] == "last_owner_protected"


def test_invitation_flow(client, owner, team_id):
    invited = client.post(
        f"/api/teams/{team_id}/invitations",
        json={"email": "bob@x.com"},
        headers=as_user(owner),
    )
    assert invited.status_code == 200
    token = invited.json()["token"]
    assert invited.json()["invite_link"].endswith(f"/{token}")

    again = client.post(
        f"/api/teams/{team_id}/invitations",
        json={"email": "bob@x.com"},
        headers=as_user(owner),
    )
    assert again.status_code == 400
    assert again.json()["code"] == "already_invited"

    details = client.get(f"/api/invitations/{token}")
    assert details.status_code == 200
    assert details.json()["team_name"] == "Acme"

    bob = uuid4()
    accepted = client.post(
        f"/api/invitations/{token}/accept", headers=as_user(bob, "bob.work@x.com")
    )
    assert accepted.status_code == 200
    assert accepted.json()["team_id"] == team_id

    assert client.get(f"/api/invitations/{token}").status_code == 404


def test_invalid_invitation_email(client, owner, team_id):
    response = client.post(
        f"/api/teams/{team_id}/invitations",
        json={"email": "not-an-email"},
        headers=as_user(owner),
    )
    assert response.status_code == 400


def test_delete_invitation(client, owner, team_id):
    invited = client.post(
        f"/api/teams/{team_id}/invitations",
        json={"email": "bob@x.com"},
        headers=as_user(owner),
    ).json()

    response = client.delete(
        f"/api/teams/{team_id}/invitations/{invited['id']}", headers=as_user(owner)
    )
    assert response.status_code == 200

    listed = client.get(f"/api/teams/{team_id}/invitations", headers=as_user(owner))
    assert listed.json() == []


def test_subscription_tiers(client):
    response = client.get("/api/teams/subscription-tiers", headers=as_user(uuid4()))

    assert response.status_code == 200
    assert [tier["name"] for tier in response.json()] == [
        "free",
        "basic",
        "pro",
        "enterprise",
    ]


def test_change_subscription(client, owner, team_id):
    response = client.put(
        f"/api/teams/{team_id}/subscription",
        json={"subscription_tier": "pro", "subscription_ref": "sub_1"},
        headers=as_user(owner),
    )
    assert response.status_code == 200
    assert response.json()["max_members"] == 20

    unknown = client.put(
        f"/api/teams/{team_id}/subscription",
        json={"subscription_tier": "platinum"},
        headers=as_user(owner),
    )
    assert unknown.status_code == 400
    assert unknown.json()["code"] == "unknown_tier"


def test_personal_team(client):
    user = uuid4()
    created = client.post("/api/teams/personal", headers=as_user(user, "solo@x.com"))
    assert created.status_code == 200
    assert created.json()["is_personal"]

    deleted = client.delete(
        f"/api/teams/{created.json()['id']}", headers=as_user(user)
    )
    assert deleted.status_code == 400
    assert deleted.json()["code"] == "personal_team_protected"


def test_delete_team(client, owner, team_id):
    response = client.delete(f"/api/teams/{team_id}", headers=as_user(owner))
    assert response.status_code == 200
    assert client.get(f"/api/teams/{team_id}", headers=as_user(owner)).status_code == 404


def test_store_outage(client, api_store, owner, team_id):
    api_store.fail_with = StoreUnavailable("timeout")

    response = client.get(f"/api/teams/{team_id}", headers=as_user(owner))

    assert response.status_code == 503
    assert response.json() == {
        "detail": "Team storage is currently unavailable",
        "code": "unavailable",
    }


def test_patch_with_null_clears_description(client, owner, team_id):
    client.patch(
        f"/api/teams/{team_id}", json={"description": "Widgets"}, headers=as_user(owner)
    )

    response = client.patch(
        f"/api/teams/{team_id}", json={"description": None}, headers=as_user(owner)
    )

    assert response.status_code == 200
    assert response.json()["description"] is None
