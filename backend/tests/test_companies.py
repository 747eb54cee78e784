"""Company Verification tests: creation, linking, the verified flag and
admin read models."""

import pytest

from app.middleware.exceptions import (
    DomainValidationError,
    InvalidStateError,
    PermissionDeniedError,
)
from app.models.company import CompanyType
from app.models.document import DocumentCategory, DocumentStatus
from app.models.load import LoadStatus
from app.models.profile import UserRole
from app.services import companies, documents, loads
from app.services.companies import SuggestedVerification, suggest_verification
from app.services.documents import ParentRef


async def upload_company_document(db, storage, actor, company_id, category=DocumentCategory.CIPC):
    return await documents.upload(
        db, storage, actor, ParentRef.of(company_id=company_id),
        category=category, title=category.value, filename=f"{category.value}.pdf",
        data=b"%PDF",
    )


@pytest.mark.unit
class TestSuggestVerification:
    def test_no_documents(self):
        assert suggest_verification([]) == SuggestedVerification.NONE

    def test_three_approved(self):
        statuses = [DocumentStatus.APPROVED] * 3 + [DocumentStatus.REJECTED]
        assert suggest_verification(statuses) == SuggestedVerification.VERIFIED

    def test_awaiting_review(self):
        statuses = [DocumentStatus.APPROVED, DocumentStatus.PENDING]
        assert suggest_verification(statuses) == SuggestedVerification.PENDING

    def test_partial(self):
        statuses = [DocumentStatus.APPROVED, DocumentStatus.REJECTED]
        assert suggest_verification(statuses) == SuggestedVerification.PARTIAL


@pytest.mark.workflow
@pytest.mark.asyncio
class TestCreateAndLink:
    async def test_newcomer_creates_and_is_linked(self, db_session, new_profile):
        newcomer = await new_profile("new@haul.test", UserRole.TRANSPORTER)
        company = await companies.create_company(db_session, newcomer, {"name": "  New Haul  "})
        assert company.name == "New Haul"
        assert company.company_type == CompanyType.TRANSPORTER
        assert company.country == "South Africa"
        assert company.is_verified is False
        assert newcomer.company_id == company.id

    async def test_type_must_match_role(self, db_session, new_profile):
        newcomer = await new_profile("new@haul.test", UserRole.TRANSPORTER)
        with pytest.raises(PermissionDeniedError):
            await companies.create_company(
                db_session, newcomer, {"name": "Wrong"}, company_type=CompanyType.SUPPLIER
            )
        assert newcomer.company_id is None

    async def test_second_company_denied(self, db_session, supplier):
        with pytest.raises(PermissionDeniedError):
            await companies.create_company(db_session, supplier, {"name": "Another"})

    async def test_verified_flag_not_settable_on_create(self, db_session, new_profile):
        newcomer = await new_profile("new@mine.test", UserRole.SUPPLIER)
        company = await companies.create_company(
            db_session, newcomer, {"name": "Sneaky", "is_verified": True}
        )
        assert company.is_verified is False

    async def test_admin_creates_then_links(self, db_session, admin, new_profile):
        newcomer = await new_profile("new@mine.test", UserRole.SUPPLIER)
        company = await companies.create_company(
            db_session, admin, {"name": "Platform Mine"}, company_type=CompanyType.SUPPLIER
        )
        assert admin.company_id is None
        assert company.created_by == admin.id

        await companies.link_profile(db_session, admin, company.id, newcomer.id)
        assert newcomer.company_id == company.id

        with pytest.raises(InvalidStateError) as exc_info:
            await companies.link_profile(db_session, admin, company.id, newcomer.id)
        assert exc_info.value.error_code == "PROFILE_ALREADY_LINKED"

    async def test_admin_must_choose_type(self, db_session, admin):
        with pytest.raises(DomainValidationError):
            await companies.create_company(db_session, admin, {"name": "Typeless"})

    async def test_link_role_mismatch(self, db_session, admin, supplier_company, new_profile):
        newcomer = await new_profile("new@haul.test", UserRole.TRANSPORTER)
        with pytest.raises(DomainValidationError) as exc_info:
            await companies.link_profile(db_session, admin, supplier_company.id, newcomer.id)
        assert exc_info.value.error_code == "ROLE_MISMATCH"

    async def test_link_is_admin_only(self, db_session, supplier, supplier_company, new_profile):
        newcomer = await new_profile("new@mine.test", UserRole.SUPPLIER)
        with pytest.raises(PermissionDeniedError):
            await companies.link_profile(db_session, supplier, supplier_company.id, newcomer.id)


@pytest.mark.workflow
@pytest.mark.asyncio
class TestVerification:
    async def test_only_admin_sets_flag(self, db_session, admin, supplier, supplier_company):
        with pytest.raises(PermissionDeniedError):
            await companies.set_verified(db_session, supplier, supplier_company.id, True)
        assert supplier_company.is_verified is False

        await companies.set_verified(db_session, admin, supplier_company.id, True)
        assert supplier_company.is_verified is True

    async def test_update_cannot_touch_flag_or_type(self, db_session, supplier, supplier_company):
        await companies.update_company(
            db_session, supplier, supplier_company.id,
            {"phone": "011 555 0100", "is_verified": True, "company_type": "transporter"},
        )
        assert supplier_company.phone == "011 555 0100"
        assert supplier_company.is_verified is False
        assert supplier_company.company_type == CompanyType.SUPPLIER

    async def test_flag_is_publicly_readable(self, db_session, admin, transporter, supplier_company):
        await companies.set_verified(db_session, admin, supplier_company.id, True)
        assert await companies.is_verified(db_session, transporter, supplier_company.id) is True

    async def test_foreign_details_denied(self, db_session, transporter, supplier_company):
        with pytest.raises(PermissionDeniedError):
            await companies.company_details(db_session, transporter, supplier_company.id)

    async def test_approved_documents_do_not_verify(self, db_session, storage, admin, supplier, supplier_company):
        for category in (DocumentCategory.CIPC, DocumentCategory.REGISTRATION, DocumentCategory.TAX_DOCUMENT):
            doc = await upload_company_document(db_session, storage, supplier, supplier_company.id, category)
            await documents.review(db_session, admin, doc.id, DocumentStatus.APPROVED)
        assert supplier_company.is_verified is False

        rows = await companies.admin_list_companies(db_session, admin, company_type=CompanyType.SUPPLIER)
        assert [(c.id, s, n) for c, s, n in rows] == [
            (supplier_company.id, SuggestedVerification.VERIFIED, 3),
        ]


@pytest.mark.workflow
@pytest.mark.asyncio
class TestReadModels:
    async def test_transporter_details_include_fleet(
        self, db_session, storage, transporter, transporter_company, truck, driver
    ):
        await documents.upload(
            db_session, storage, transporter, ParentRef.of(truck_id=truck.id),
            category=DocumentCategory.ROADWORTHY, title="RW", filename="rw.pdf", data=b"%PDF",
        )
        await upload_company_document(db_session, storage, transporter, transporter_company.id)

        details = await companies.company_details(db_session, transporter, transporter_company.id)
        assert [d.category for d in details.documents] == [DocumentCategory.CIPC]
        assert [m.id for m in details.members] == [transporter.id]
        assert [t.id for t, _ in details.trucks] == [truck.id]
        assert [d.id for d, _ in details.drivers] == [driver.id]
        assert details.trailers == []
        assert details.suggested_verification == SuggestedVerification.PENDING

    async def test_supplier_details_have_no_fleet(self, db_session, supplier, supplier_company):
        details = await companies.company_details(db_session, supplier, supplier_company.id)
        assert details.trucks == [] and details.drivers == []
        assert details.suggested_verification == SuggestedVerification.NONE

    async def test_admin_list_search(self, db_session, admin, supplier_company, transporter_company):
        rows = await companies.admin_list_companies(db_session, admin, search="swift")
        assert [c.name for c, _, _ in rows] == ["Swift Haulage"]

    async def test_admin_list_is_admin_only(self, db_session, supplier):
        with pytest.raises(PermissionDeniedError):
            await companies.admin_list_companies(db_session, supplier)

    async def test_dashboard_stats(
        self, db_session, storage, geocoder, admin, supplier, supplier_company, transporter, truck, driver,
        new_profile,
    ):
        await new_profile("loose@end.test", UserRole.SUPPLIER)
        await upload_company_document(db_session, storage, supplier, supplier_company.id)
        load = await loads.create_load(db_session, geocoder, supplier, {"title": "Coal"})
        await loads.create_load(db_session, geocoder, supplier, {"title": "Chrome"})
        await loads.transition(db_session, admin, load.id, LoadStatus.APPROVED)

        stats = await companies.dashboard_stats(db_session, admin)
        assert stats["suppliers"] == 1
        assert stats["transporters"] == 1
        assert stats["verified_companies"] == 0
        assert stats["pending_documents"] == 1
        assert stats["pending_loads"] == 1
        assert stats["active_loads"] == 1
        assert stats["loads_in_transit"] == 0
        assert stats["trucks"] == 1
        assert stats["drivers"] == 1
        assert stats["trailers"] == 0
        assert stats["unlinked_profiles"] == 1

    async def test_pending_approvals(self, db_session, storage, geocoder, admin, supplier, supplier_company):
        await upload_company_document(db_session, storage, supplier, supplier_company.id)
        await loads.create_load(db_session, geocoder, supplier, {"title": "Coal"})

        pending = await companies.pending_approvals(db_session, admin)
        assert [name for _, name in pending["documents"]] == ["Acme Minerals"]
        assert [name for _, name in pending["loads"]] == ["Acme Minerals"]
