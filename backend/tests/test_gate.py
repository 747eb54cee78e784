"""Role Gate decision tests — pure, no database."""

import pytest

from app.auth.gate import ADMIN_ONLY, Action, Target, authorize, ensure
from app.middleware.exceptions import PermissionDeniedError
from app.models.load import LoadStatus
from app.models.profile import Profile, UserRole

OWN = "company-own"
OTHER = "company-other"


def actor(role: UserRole, company_id: str | None = OWN, profile_id: str = "me") -> Profile:
    return Profile(id=profile_id, email=f"{profile_id}@test", role=role, company_id=company_id)


@pytest.mark.unit
class TestAdmin:
    def test_admin_may_do_everything(self):
        admin = actor(UserRole.ADMIN, company_id=None)
        for action in Action:
            assert authorize(admin, action, Target(company_id=OTHER)).allowed, action

    def test_admin_cannot_create_under_another_identity(self):
        admin = actor(UserRole.ADMIN, company_id=None)
        decision = authorize(admin, Action.LOAD_CREATE, Target(acting_as="someone-else"))
        assert not decision
        assert "identity" in decision.reason


@pytest.mark.unit
class TestAdminReservedActions:
    @pytest.mark.parametrize("role", [UserRole.SUPPLIER, UserRole.TRANSPORTER])
    @pytest.mark.parametrize("action", sorted(ADMIN_ONLY, key=lambda a: a.value))
    def test_non_admin_denied_even_on_own_company(self, role, action):
        decision = authorize(actor(role), action, Target(company_id=OWN))
        assert not decision.allowed
        assert decision.reason

    def test_owner_cannot_approve_own_document_or_load(self):
        supplier = actor(UserRole.SUPPLIER)
        assert not authorize(supplier, Action.DOCUMENT_REVIEW, Target(company_id=OWN))
        assert not authorize(
            supplier, Action.LOAD_REVIEW,
            Target(company_id=OWN, load_status=LoadStatus.PENDING),
        )


@pytest.mark.unit
class TestOwnership:
    def test_foreign_company_write_denied(self):
        transporter = actor(UserRole.TRANSPORTER)
        decision = authorize(transporter, Action.FLEET_UPDATE, Target(company_id=OTHER))
        assert not decision
        assert "another company" in decision.reason

    def test_own_company_write_allowed(self):
        transporter = actor(UserRole.TRANSPORTER)
        assert authorize(transporter, Action.FLEET_DELETE, Target(company_id=OWN))
        assert authorize(transporter, Action.DOCUMENT_UPLOAD, Target(company_id=OWN))

    def test_transporter_reads_foreign_approved_load(self):
        transporter = actor(UserRole.TRANSPORTER)
        target = Target(company_id=OTHER, load_status=LoadStatus.APPROVED)
        assert authorize(transporter, Action.LOAD_READ, target)

    @pytest.mark.parametrize("status", [s for s in LoadStatus if s != LoadStatus.APPROVED])
    def test_transporter_cannot_read_foreign_unapproved_load(self, status):
        transporter = actor(UserRole.TRANSPORTER)
        target = Target(company_id=OTHER, load_status=status)
        assert not authorize(transporter, Action.LOAD_READ, target)

    def test_supplier_cannot_read_foreign_approved_load(self):
        supplier = actor(UserRole.SUPPLIER)
        target = Target(company_id=OTHER, load_status=LoadStatus.APPROVED)
        assert not authorize(supplier, Action.LOAD_READ, target)

    def test_platform_load_is_not_editable_by_suppliers(self):
        supplier = actor(UserRole.SUPPLIER)
        target = Target(company_id=None, load_status=LoadStatus.PENDING)
        assert not authorize(supplier, Action.LOAD_UPDATE, target)

    def test_verification_flag_is_public(self):
        supplier = actor(UserRole.SUPPLIER)
        assert authorize(supplier, Action.COMPANY_READ_VERIFICATION, Target(company_id=OTHER))

    def test_foreign_company_details_denied(self):
        supplier = actor(UserRole.SUPPLIER)
        assert not authorize(supplier, Action.COMPANY_READ, Target(company_id=OTHER))


@pytest.mark.unit
class TestRoleFit:
    def test_supplier_cannot_manage_fleet(self):
        supplier = actor(UserRole.SUPPLIER)
        decision = authorize(supplier, Action.FLEET_CREATE, Target(company_id=OWN))
        assert not decision
        assert "transporter" in decision.reason.lower()

    def test_transporter_cannot_post_loads(self):
        transporter = actor(UserRole.TRANSPORTER)
        decision = authorize(transporter, Action.LOAD_CREATE, Target(company_id=OWN, acting_as="me"))
        assert not decision
        assert "supplier" in decision.reason.lower()

    def test_supplier_posts_load_for_own_company(self):
        supplier = actor(UserRole.SUPPLIER)
        assert authorize(supplier, Action.LOAD_CREATE, Target(company_id=OWN, acting_as="me"))

    def test_company_less_profile_must_set_up_company_first(self):
        newcomer = actor(UserRole.SUPPLIER, company_id=None)
        decision = authorize(newcomer, Action.LOAD_CREATE, Target(acting_as="me"))
        assert not decision
        assert decision.reason == "Complete your company profile first"

    def test_company_less_profile_may_create_matching_company(self):
        newcomer = actor(UserRole.TRANSPORTER, company_id=None)
        target = Target(company_type="transporter", acting_as="me")
        assert authorize(newcomer, Action.COMPANY_CREATE, target)

    def test_company_type_must_match_role(self):
        newcomer = actor(UserRole.TRANSPORTER, company_id=None)
        target = Target(company_type="supplier", acting_as="me")
        assert not authorize(newcomer, Action.COMPANY_CREATE, target)

    def test_second_company_denied(self):
        supplier = actor(UserRole.SUPPLIER)
        assert not authorize(supplier, Action.COMPANY_CREATE, Target(company_type="supplier"))

    def test_non_admin_cannot_act_as_someone_else(self):
        supplier = actor(UserRole.SUPPLIER)
        target = Target(company_id=OWN, acting_as="another-profile")
        assert not authorize(supplier, Action.LOAD_CREATE, target)


@pytest.mark.unit
class TestEnsure:
    def test_denial_raises_with_reason(self):
        supplier = actor(UserRole.SUPPLIER)
        with pytest.raises(PermissionDeniedError) as exc_info:
            ensure(supplier, Action.DOCUMENT_REVIEW, Target(company_id=OWN))
        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Only a platform admin can perform this action"

    def test_allowed_returns_none(self):
        assert ensure(actor(UserRole.ADMIN, None), Action.PLATFORM_STATS) is None

    def test_authorize_never_raises_without_target(self):
        for role in UserRole:
            for action in Action:
                authorize(actor(role), action)
