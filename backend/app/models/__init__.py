"""Aggregate model imports for Alembic auto-detection."""

from app.models.profile import Profile, UserRole  # noqa: F401
from app.models.company import Company, CompanyType  # noqa: F401

# Fleet
from app.models.driver import Driver  # noqa: F401
from app.models.truck import Truck  # noqa: F401
from app.models.trailer import Trailer, TrailerType  # noqa: F401

# Workflow
from app.models.document import Document, DocumentCategory, DocumentStatus  # noqa: F401
from app.models.load import Load, LoadStatus  # noqa: F401

# Audit
from app.models.activity_log import ActivityLog  # noqa: F401
