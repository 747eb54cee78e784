"""Company router — company profiles, linking and verification.

Endpoints:
    POST   /api/companies/                     Create company (own, or admin-authored)
    GET    /api/companies/me                   Own company with documents and fleet
    GET    /api/companies/{id}                 Company details
    GET    /api/companies/{id}/verification    Public verified flag
    PATCH  /api/companies/{id}                 Update company details
    PUT    /api/companies/{id}/verification    Set verified flag (admin)
    POST   /api/companies/{id}/link            Link a company-less profile (admin)
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_current_profile
from app.database import get_db
from app.middleware.exceptions import DomainValidationError
from app.models.profile import Profile
from app.schemas.auth import ProfileOut
from app.schemas.company import (
    CompanyCreate,
    CompanyDetailsOut,
    CompanyOut,
    CompanyUpdate,
    CompanyVerification,
    LinkProfileRequest,
    VerifyRequest,
)
from app.schemas.document import DocumentOut
from app.schemas.fleet import DriverWithDocuments, TrailerWithDocuments, TruckWithDocuments
from app.services import companies
from app.services.companies import CompanyDetails

router = APIRouter()


def _details_out(details: CompanyDetails) -> CompanyDetailsOut:
    def with_docs(schema, pairs):
        return [
            schema.model_validate(asset).model_copy(
                update={"documents": [DocumentOut.model_validate(d) for d in docs]}
            )
            for asset, docs in pairs
        ]

    return CompanyDetailsOut(
        company=CompanyOut.model_validate(details.company),
        suggested_verification=details.suggested_verification.value,
        documents=[DocumentOut.model_validate(d) for d in details.documents],
        members=[ProfileOut.model_validate(m) for m in details.members],
        drivers=with_docs(DriverWithDocuments, details.drivers),
        trucks=with_docs(TruckWithDocuments, details.trucks),
        trailers=with_docs(TrailerWithDocuments, details.trailers),
    )


@router.post("/", response_model=CompanyOut, status_code=201)
async def create_company(
    body: CompanyCreate,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Create a company.

    Suppliers and transporters create their own (type = their role) and
    are linked to it; admins must pass ``company_type``.
    """
    company = await companies.create_company(
        db, profile, body.model_dump(exclude={"company_type"}),
        company_type=body.company_type,
    )
    return CompanyOut.model_validate(company)


@router.get("/me", response_model=CompanyDetailsOut)
async def my_company(
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    if not profile.company_id:
        raise DomainValidationError("Complete your company profile first", error_code="NO_COMPANY")
    details = await companies.company_details(db, profile, profile.company_id)
    return _details_out(details)


@router.get("/{company_id}", response_model=CompanyDetailsOut)
async def get_company(
    company_id: str,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    details = await companies.company_details(db, profile, company_id)
    return _details_out(details)


@router.get("/{company_id}/verification", response_model=CompanyVerification)
async def get_verification(
    company_id: str,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Whether a company is verified (visible to any signed-in user)."""
    verified = await companies.is_verified(db, profile, company_id)
    return CompanyVerification(company_id=company_id, is_verified=verified)


@router.patch("/{company_id}", response_model=CompanyOut)
async def update_company(
    company_id: str,
    body: CompanyUpdate,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    company = await companies.update_company(
        db, profile, company_id, body.model_dump(exclude_unset=True)
    )
    return CompanyOut.model_validate(company)


@router.put("/{company_id}/verification", response_model=CompanyOut)
async def set_verification(
    company_id: str,
    body: VerifyRequest,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Set or clear the verified flag (admin)."""
    company = await companies.set_verified(db, profile, company_id, body.is_verified)
    return CompanyOut.model_validate(company)


@router.post("/{company_id}/link", response_model=ProfileOut)
async def link_profile(
    company_id: str,
    body: LinkProfileRequest,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Attach an admin-authored company to a profile without one (admin)."""
    linked = await companies.link_profile(db, profile, company_id, body.profile_id)
    return ProfileOut.model_validate(linked)
