"""HTTP tests for the member lifecycle endpoints."""

from uuid import uuid4

import pytest

from src.agency.core.errors import TransientStoreError
from src.agency.core.notifications import DeliveryResult
from src.agency.models import AccountRole, AccountStatus
from tests.helpers import make_access_token
from tests.factories import DEFAULT_TEMPORARY_CREDENTIAL, AccountFactory, ClientAssignmentFactory

pytestmark = [pytest.mark.api, pytest.mark.asyncio]

INVITE = {
    "email": "new.person@example.com",
    "role": "team_member",
    "first_name": "New",
    "last_name": "Person",
    "title": "Copywriter",
}
NEW_CREDENTIAL = "Violet-Harbor-Lantern-42"


class TestInvite:
    async def test_invite_delivered(self, client, admin, auth_headers, identity):
        response = await client.post("/api/v1/members/invite", json=INVITE, headers=auth_headers(admin))

        assert response.status_code == 201
        body = response.json()
        assert body["email_delivered"] is True
        assert body["temporary_credential"] is None
        assert body["manual_delivery"] is None
        assert body["member"]["status"] == "pending"
        assert "temporary_credential" not in body["member"]
        assert body["member"]["id"] in identity.records

    async def test_invite_undelivered_returns_credential(
        self, client, admin, auth_headers, dispatcher, store
    ):
        dispatcher.result = DeliveryResult(delivered=False, error="Email delivery timed out")

        response = await client.post("/api/v1/members/invite", json=INVITE, headers=auth_headers(admin))

        assert response.status_code == 201
        body = response.json()
        stored = store.account(body["member"]["id"])
        assert body["email_delivered"] is False
        assert body["email_error"] == "Email delivery timed out"
        assert body["temporary_credential"] == stored.temporary_credential
        manual = body["manual_delivery"]
        assert manual["temporary_credential"] == stored.temporary_credential
        assert manual["login_url"].endswith("/auth/signin")
        assert manual["note"]

    async def test_invite_requires_token(self, client):
        response = await client.post("/api/v1/members/invite", json=INVITE)

        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "authentication"
        assert "request_id" in body

    async def test_pending_account_cannot_authenticate(self, client, store, organization):
        pending = store.seed(
            AccountFactory.pending(organization_id=organization.id, role=AccountRole.ADMIN.value)
        )

        response = await client.post(
            "/api/v1/members/invite",
            json=INVITE,
            headers={"Authorization": f"Bearer {make_access_token(pending.id)}"},
        )

        assert response.status_code == 401

    async def test_invite_requires_admin(self, client, seed_member, auth_headers):
        manager = seed_member(role=AccountRole.MANAGER.value)

        response = await client.post(
            "/api/v1/members/invite", json=INVITE, headers=auth_headers(manager)
        )

        assert response.status_code == 403
        assert response.json()["error"] == "authorization"

    async def test_invalid_role_is_400(self, client, admin, auth_headers):
        response = await client.post(
            "/api/v1/members/invite",
            json={**INVITE, "role": "owner"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation"
        assert body["detail"].startswith("role")

    async def test_duplicate_is_409_with_resolution(self, client, admin, auth_headers, seed_member):
        seed_member(email=INVITE["email"])

        response = await client.post("/api/v1/members/invite", json=INVITE, headers=auth_headers(admin))

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "conflict"
        assert body["resolution"]

    async def test_unreachable_store_is_503(self, client, admin, auth_headers, store):
        store.ping_errors.extend([TransientStoreError("down")] * 4)

        response = await client.post("/api/v1/members/invite", json=INVITE, headers=auth_headers(admin))

        assert response.status_code == 503
        body = response.json()
        assert body["error"] == "transient_store"
        assert body["resolution"]


class TestActivate:
    @pytest.fixture
    def pending(self, store, identity, organization):
        account = store.seed(
            AccountFactory.pending(organization_id=organization.id, email="invitee@example.com")
        )
        identity.seed(account.id, account.email, DEFAULT_TEMPORARY_CREDENTIAL)
        return account

    async def test_activate(self, client, pending, organization):
        response = await client.post(
            "/api/v1/members/activate",
            json={
                "email": "invitee@example.com",
                "temporary_credential": DEFAULT_TEMPORARY_CREDENTIAL,
                "new_credential": NEW_CREDENTIAL,
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["member"]["status"] == AccountStatus.ACTIVE.value
        assert body["organization"]["id"] == str(organization.id)
        assert body["session"]["access_token"]
        assert body["message"] == "Account activated successfully"

    async def test_weak_credential_is_400(self, client, pending):
        response = await client.post(
            "/api/v1/members/activate",
            json={
                "email": "invitee@example.com",
                "temporary_credential": DEFAULT_TEMPORARY_CREDENTIAL,
                "new_credential": "password",
            },
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation"

    async def test_wrong_temporary_credential_is_401(self, client, pending):
        response = await client.post(
            "/api/v1/members/activate",
            json={
                "email": "invitee@example.com",
                "temporary_credential": "Wrong#Cred9999",
                "new_credential": NEW_CREDENTIAL,
            },
        )

        assert response.status_code == 401


class TestDelete:
    async def test_delete(self, client, admin, auth_headers, seed_member, store):
        target = seed_member(display_name="Tom Target")
        store.seed(ClientAssignmentFactory.build(account_id=target.id))

        response = await client.delete(f"/api/v1/members/{target.id}", headers=auth_headers(admin))

        assert response.status_code == 200
        body = response.json()
        assert body["deleted_member"]["id"] == target.id
        assert body["impact"]["removed_client_assignments"] == 1
        assert body["impact"]["reassigned_to"] == admin.id
        assert body["identity_account_removed"] is True
        assert body["message"] == "Tom Target has been permanently deleted"

    async def test_self_delete_is_policy_violation(self, client, admin, auth_headers):
        response = await client.delete(f"/api/v1/members/{admin.id}", headers=auth_headers(admin))

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "policy_violation"
        assert body["detail"] == "You cannot delete your own account"

    async def test_unknown_member_is_404(self, client, admin, auth_headers):
        response = await client.delete(f"/api/v1/members/{uuid4()}", headers=auth_headers(admin))

        assert response.status_code == 404

    async def test_identity_failure_reports_partial_deletion(
        self, client, admin, auth_headers, seed_member, identity, store
    ):
        target = seed_member()
        identity.fail("delete_account")

        response = await client.delete(f"/api/v1/members/{target.id}", headers=auth_headers(admin))

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "external_provider"
        assert body["details"]["store_deleted"] is True
        assert store.account(target.id) is None


async def test_list_members(client, admin, auth_headers, seed_member, store):
    member = seed_member()
    store.seed(ClientAssignmentFactory.build(account_id=member.id))

    response = await client.get("/api/v1/members", headers=auth_headers(admin))

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    counts = {m["id"]: m["assigned_client_count"] for m in body["members"]}
    assert counts == {admin.id: 0, member.id: 1}


async def test_request_id_is_echoed_in_errors(client):
    request_id = uuid4().hex

    response = await client.delete("/api/v1/members/anyone", headers={"X-Request-ID": request_id})

    assert response.headers["X-Request-ID"] == request_id
    assert response.json()["request_id"] == request_id
