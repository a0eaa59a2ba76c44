"""Tests for the delegation API."""

import pytest
from httpx import AsyncClient

from app.core.notifier import NotificationEvent
from tests.conftest import auth_headers


def delegation_body(delegate, start="2026-02-01T00:00:00Z", end="2026-02-10T23:59:59Z") -> dict:
    return {
        "delegate_id": str(delegate.id),
        "start_date": start,
        "end_date": end,
        "reason": "Annual leave",
    }


async def create_delegation(client: AsyncClient, delegator, delegate, **window) -> dict:
    response = await client.post(
        "/api/delegations/",
        json=delegation_body(delegate, **window),
        headers=auth_headers(delegator),
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_delegation(client: AsyncClient, notifier, approver, delegate):
    created = await create_delegation(client, approver, delegate)

    assert created["delegator_id"] == str(approver.id)
    assert created["delegate"]["email"] == delegate.email
    assert created["is_active"] is True
    assert created["auto_expired"] is False
    assert notifier.events() == [NotificationEvent.DELEGATION_CREATED]


@pytest.mark.asyncio
async def test_overlapping_delegation_rejected(client: AsyncClient, approver, delegate, outsider):
    await create_delegation(client, approver, delegate)

    response = await client.post(
        "/api/delegations/",
        json=delegation_body(outsider, start="2026-02-05T00:00:00Z", end="2026-02-15T00:00:00Z"),
        headers=auth_headers(approver),
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "VALIDATION_ERROR"
    assert response.json()["detail"] == (
        "Delegator already has an active delegation for this time period"
    )

    await create_delegation(
        client, approver, outsider, start="2026-02-11T00:00:00Z", end="2026-02-20T00:00:00Z"
    )


@pytest.mark.asyncio
async def test_bad_window_and_self_delegation(client: AsyncClient, approver, delegate):
    response = await client.post(
        "/api/delegations/",
        json=delegation_body(delegate, start="2026-02-10T00:00:00Z", end="2026-02-01T00:00:00Z"),
        headers=auth_headers(approver),
    )
    assert response.status_code == 400

    response = await client.post(
        "/api/delegations/", json=delegation_body(approver), headers=auth_headers(approver)
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delegate to yourself"


@pytest.mark.asyncio
async def test_requester_cannot_create_delegation(client: AsyncClient, requester, approver):
    response = await client.post(
        "/api/delegations/", json=delegation_body(approver), headers=auth_headers(requester)
    )

    assert response.status_code == 403
    assert response.json()["detail"] == "Only approvers can create delegations"


@pytest.mark.asyncio
async def test_requester_cannot_be_named_delegate(client: AsyncClient, approver, requester):
    response = await client.post(
        "/api/delegations/", json=delegation_body(requester), headers=auth_headers(approver)
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Delegate must be an approver or admin"

    pending = await client.get("/api/requests/pending", headers=auth_headers(requester))
    assert pending.status_code == 200
    assert pending.json()["requests"] == []


@pytest.mark.asyncio
async def test_listing_endpoints(client: AsyncClient, approver, delegate, outsider):
    mine = await create_delegation(client, approver, delegate)
    to_me = await create_delegation(client, outsider, approver)

    response = await client.get("/api/delegations/my-delegations", headers=auth_headers(approver))
    assert [d["id"] for d in response.json()["delegations"]] == [mine["id"]]

    response = await client.get("/api/delegations/to-me", headers=auth_headers(approver))
    assert [d["id"] for d in response.json()["delegations"]] == [to_me["id"]]

    response = await client.get("/api/delegations/", headers=auth_headers(approver))
    assert response.json()["total"] == 2

    response = await client.get("/api/delegations/active", headers=auth_headers(approver))
    assert response.json()["total"] == 2


@pytest.mark.asyncio
async def test_active_delegate_lookup(client: AsyncClient, clock, approver, delegate):
    created = await create_delegation(client, approver, delegate)

    response = await client.get(
        f"/api/delegations/active-delegate/{approver.id}", headers=auth_headers(delegate)
    )
    assert response.status_code == 200
    assert response.json()["delegation"]["id"] == created["id"]

    clock.advance(days=30)
    response = await client.get(
        f"/api/delegations/active-delegate/{approver.id}", headers=auth_headers(delegate)
    )
    assert response.json()["delegation"] is None


@pytest.mark.asyncio
async def test_update_and_cancel(client: AsyncClient, notifier, approver, delegate):
    created = await create_delegation(client, approver, delegate)
    url = f"/api/delegations/{created['id']}"

    response = await client.put(url, json={"reason": "Conference"}, headers=auth_headers(approver))
    assert response.status_code == 200
    assert response.json()["reason"] == "Conference"

    response = await client.delete(url, headers=auth_headers(delegate))
    assert response.status_code == 403

    response = await client.delete(url, headers=auth_headers(approver))
    assert response.status_code == 200
    assert response.json()["is_active"] is False
    assert notifier.events()[-1] == NotificationEvent.DELEGATION_CANCELLED

    response = await client.delete(url, headers=auth_headers(approver))
    assert response.status_code == 400
    assert response.json()["error_code"] == "INVALID_STATE"


@pytest.mark.asyncio
async def test_get_delegation_visibility(client: AsyncClient, approver, delegate, outsider):
    created = await create_delegation(client, approver, delegate)
    url = f"/api/delegations/{created['id']}"

    assert (await client.get(url, headers=auth_headers(delegate))).status_code == 200
    assert (await client.get(url, headers=auth_headers(outsider))).status_code == 403
