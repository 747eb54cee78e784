"""End-to-end workflow tests through the HTTP API."""

import pytest
from httpx import AsyncClient

from conftest import auth_headers_for

COPPER_LOAD = {
    "title": "Copper cathodes",
    "cargo_type": "Metals",
    "weight_tons": 28.5,
    "pickup_city": "Johannesburg",
    "delivery_city": "Durban",
    "required_trailer_type": ["flatbed"],
}


@pytest.mark.api
@pytest.mark.asyncio
class TestErrorEnvelope:
    async def test_not_found(self, client: AsyncClient, admin):
        response = await client.get("/api/loads/does-not-exist", headers=auth_headers_for(admin))
        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "RESOURCE_NOT_FOUND"
        assert "does-not-exist" in error["message"]

    async def test_gate_denial_carries_reason(self, client: AsyncClient, supplier):
        response = await client.get("/api/admin/stats", headers=auth_headers_for(supplier))
        assert response.status_code == 403

        response = await client.get("/api/loads/pending", headers=auth_headers_for(supplier))
        assert response.status_code == 403
        assert response.json()["error"] == {
            "code": "PERMISSION_DENIED",
            "message": "Only a platform admin can perform this action",
        }

    async def test_schema_validation(self, client: AsyncClient, supplier):
        response = await client.post(
            "/api/loads/", json={"weight_tons": -1}, headers=auth_headers_for(supplier)
        )
        assert response.status_code == 422
        fields = {e["field"] for e in response.json()["error"]["details"]["errors"]}
        assert "body -> title" in fields


@pytest.mark.api
@pytest.mark.asyncio
class TestLoadBoard:
    async def test_pending_load_hidden_until_approved(self, client: AsyncClient, admin, supplier, transporter):
        supplier_headers = auth_headers_for(supplier)
        transporter_headers = auth_headers_for(transporter)
        admin_headers = auth_headers_for(admin)

        response = await client.post("/api/loads/", json=COPPER_LOAD, headers=supplier_headers)
        assert response.status_code == 201
        load = response.json()
        assert load["status"] == "pending"
        assert load["pickup_lat"] == pytest.approx(-26.2041)

        board = await client.get("/api/loads/available", headers=transporter_headers)
        assert board.json() == []
        direct = await client.get(f"/api/loads/{load['id']}", headers=transporter_headers)
        assert direct.status_code == 403

        response = await client.post(
            f"/api/loads/{load['id']}/transition",
            json={"status": "approved"},
            headers=admin_headers,
        )
        assert response.status_code == 200

        board = await client.get("/api/loads/available", headers=transporter_headers)
        assert [(l["id"], l["company_name"]) for l in board.json()] == [(load["id"], "Acme Minerals")]

    async def test_supplier_edit_locked_after_approval(self, client: AsyncClient, admin, supplier):
        supplier_headers = auth_headers_for(supplier)
        load = (await client.post("/api/loads/", json=COPPER_LOAD, headers=supplier_headers)).json()
        await client.post(
            f"/api/loads/{load['id']}/transition", json={"status": "approved"},
            headers=auth_headers_for(admin),
        )

        response = await client.patch(
            f"/api/loads/{load['id']}", json={"title": "Changed"}, headers=supplier_headers
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "LOAD_LOCKED"

        unchanged = await client.get(f"/api/loads/{load['id']}", headers=supplier_headers)
        assert unchanged.json()["title"] == "Copper cathodes"
        assert unchanged.json()["status"] == "approved"

    async def test_supplier_cannot_approve_own_load(self, client: AsyncClient, supplier):
        headers = auth_headers_for(supplier)
        load = (await client.post("/api/loads/", json=COPPER_LOAD, headers=headers)).json()

        response = await client.post(
            f"/api/loads/{load['id']}/transition", json={"status": "approved"}, headers=headers
        )
        assert response.status_code == 403
        mine = await client.get("/api/loads/mine", headers=headers)
        assert [l["status"] for l in mine.json()] == ["pending"]

    async def test_illegal_transition_conflict(self, client: AsyncClient, admin, supplier):
        load = (await client.post("/api/loads/", json=COPPER_LOAD, headers=auth_headers_for(supplier))).json()
        response = await client.post(
            f"/api/loads/{load['id']}/transition", json={"status": "completed"},
            headers=auth_headers_for(admin),
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_STATE"

    async def test_admin_list_paginates(self, client: AsyncClient, admin, supplier):
        headers = auth_headers_for(supplier)
        for title in ("One", "Two", "Three"):
            await client.post("/api/loads/", json={**COPPER_LOAD, "title": title}, headers=headers)

        response = await client.get(
            "/api/loads/", params={"limit": 2}, headers=auth_headers_for(admin)
        )
        page = response.json()
        assert page["total"] == 3
        assert len(page["items"]) == 2


@pytest.mark.api
@pytest.mark.asyncio
class TestDocumentFlow:
    async def test_upload_review_download(self, client: AsyncClient, storage, admin, transporter, truck):
        transporter_headers = auth_headers_for(transporter)
        admin_headers = auth_headers_for(admin)

        response = await client.post(
            "/api/documents/",
            data={"category": "roadworthy", "title": "Roadworthy 2026", "truck_id": truck.id},
            files={"file": ("roadworthy.pdf", b"%PDF-1.7 test", "application/pdf")},
            headers=transporter_headers,
        )
        assert response.status_code == 201
        document = response.json()
        assert document["status"] == "pending"
        assert document["truck_id"] == truck.id
        assert document["company_id"] == truck.company_id
        assert len(storage.objects) == 1

        response = await client.put(
            f"/api/documents/{document['id']}/review",
            json={"status": "rejected", "rejection_reason": "   "},
            headers=admin_headers,
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "MISSING_REASON"

        response = await client.put(
            f"/api/documents/{document['id']}/review",
            json={"status": "rejected", "rejection_reason": "Expired"},
            headers=admin_headers,
        )
        assert response.json()["status"] == "rejected"
        assert response.json()["rejection_reason"] == "Expired"

        response = await client.get(
            f"/api/documents/{document['id']}/download", headers=transporter_headers
        )
        assert response.status_code == 200
        assert response.json()["url"].startswith("https://storage.test/")

    async def test_two_parents_rejected_without_side_effects(self, client: AsyncClient, storage, admin, truck, driver):
        response = await client.post(
            "/api/documents/",
            data={"category": "other", "title": "Both", "truck_id": truck.id, "driver_id": driver.id},
            files={"file": ("both.pdf", b"%PDF", "application/pdf")},
            headers=auth_headers_for(admin),
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "MULTIPLE_PARENTS"
        assert storage.objects == {}

    async def test_storage_outage_is_503(self, client: AsyncClient, storage, supplier, supplier_company):
        storage.fail_put = True
        response = await client.post(
            "/api/documents/",
            data={"category": "cipc", "title": "CIPC", "company_id": supplier_company.id},
            files={"file": ("cipc.pdf", b"%PDF", "application/pdf")},
            headers=auth_headers_for(supplier),
        )
        assert response.status_code == 503
        assert response.json()["error"]["code"] == "STORAGE_FAILURE"

    async def test_truck_delete_cascades(self, client: AsyncClient, storage, transporter, truck):
        headers = auth_headers_for(transporter)
        truck_id = truck.id
        for category in ("roadworthy", "brake_test"):
            await client.post(
                "/api/documents/",
                data={"category": category, "title": category, "truck_id": truck_id},
                files={"file": (f"{category}.pdf", b"%PDF", "application/pdf")},
                headers=headers,
            )

        response = await client.delete(f"/api/trucks/{truck_id}", headers=headers)
        assert response.status_code == 200
        assert response.json()["documents_removed"] == 2
        assert storage.objects == {}

        response = await client.get(f"/api/trucks/{truck_id}", headers=headers)
        assert response.status_code == 404


@pytest.mark.api
@pytest.mark.asyncio
class TestCompanyOnboarding:
    async def test_register_create_company_and_post(self, client: AsyncClient, admin):
        registered = await client.post(
            "/api/auth/register",
            json={"email": "owner@newmine.co.za", "password": "SecurePassword123!", "role": "supplier"},
        )
        headers = {"Authorization": f"Bearer {registered.json()['access_token']}"}

        blocked = await client.post("/api/loads/", json=COPPER_LOAD, headers=headers)
        assert blocked.status_code == 403
        assert blocked.json()["error"]["message"] == "Complete your company profile first"

        company = await client.post("/api/companies/", json={"name": "New Mine"}, headers=headers)
        assert company.status_code == 201
        assert company.json()["company_type"] == "supplier"
        assert company.json()["is_verified"] is False

        posted = await client.post("/api/loads/", json=COPPER_LOAD, headers=headers)
        assert posted.status_code == 201
        assert posted.json()["company_id"] == company.json()["id"]

        overview = await client.get("/api/admin/companies", headers=auth_headers_for(admin))
        assert [(c["name"], c["suggested_verification"]) for c in overview.json()] == [("New Mine", "none")]

    async def test_verification_flag(self, client: AsyncClient, admin, transporter, supplier_company):
        response = await client.put(
            f"/api/companies/{supplier_company.id}/verification",
            json={"is_verified": True}, headers=auth_headers_for(admin),
        )
        assert response.status_code == 200

        response = await client.get(
            f"/api/companies/{supplier_company.id}/verification",
            headers=auth_headers_for(transporter),
        )
        assert response.json()["is_verified"] is True


@pytest.mark.api
@pytest.mark.asyncio
class TestHealth:
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
