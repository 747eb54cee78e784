"""Initial schema — companies, profiles, fleet, documents, loads, activity log.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-19

Run with:
    alembic upgrade head
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa

USER_ROLES = ("supplier", "transporter", "admin")
COMPANY_TYPES = ("supplier", "transporter")
TRAILER_TYPES = (
    "tautliner", "flatbed", "lowbed", "tanker", "refrigerated",
    "container", "side_tipper", "end_tipper", "other",
)
DOCUMENT_STATUSES = ("pending", "approved", "rejected")
DOCUMENT_CATEGORIES = (
    "registration", "cipc", "tax_document",
    "id_document", "drivers_license", "pdp", "passport",
    "truck_registration", "brake_test", "roadworthy",
    "trailer_registration", "other",
)
LOAD_STATUSES = ("pending", "approved", "rejected", "in_transit", "completed", "cancelled")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # ── Companies and profiles ───────────────────────────────

    op.create_table(
        "companies",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("registration_number", sa.String(100)),
        sa.Column("tax_number", sa.String(100)),
        sa.Column("address", sa.Text()),
        sa.Column("city", sa.String(100)),
        sa.Column("province", sa.String(100)),
        sa.Column("postal_code", sa.String(20)),
        sa.Column("country", sa.String(100), server_default="South Africa"),
        sa.Column("phone", sa.String(50)),
        sa.Column("email", sa.String(255)),
        sa.Column("website", sa.String(255)),
        sa.Column("company_type", sa.Enum(*COMPANY_TYPES, name="company_type"), nullable=False),
        sa.Column("does_cross_border", sa.Boolean(), server_default="false"),
        sa.Column("is_verified", sa.Boolean(), server_default="false"),
        sa.Column("created_by", sa.String(36)),
        *_timestamps(),
    )
    op.create_index("ix_companies_company_type", "companies", ["company_type"])
    op.create_index("ix_companies_is_verified", "companies", ["is_verified"])

    op.create_table(
        "profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255)),
        sa.Column("full_name", sa.String(255)),
        sa.Column("role", sa.Enum(*USER_ROLES, name="user_role"), nullable=False),
        sa.Column("company_id", sa.String(36), sa.ForeignKey("companies.id")),
        sa.Column("is_active", sa.Boolean(), server_default="true"),
        sa.Column("disabled_at", sa.DateTime()),
        *_timestamps(),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=True)
    op.create_index("ix_profiles_company_id", "profiles", ["company_id"])

    # ── Fleet ────────────────────────────────────────────────

    op.create_table(
        "drivers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("company_id", sa.String(36), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("id_number", sa.String(50)),
        sa.Column("license_number", sa.String(50)),
        sa.Column("license_expiry", sa.Date()),
        sa.Column("phone", sa.String(50)),
        sa.Column("email", sa.String(255)),
        sa.Column("is_active", sa.Boolean(), server_default="true"),
        sa.Column("is_verified", sa.Boolean(), server_default="false"),
        sa.Column("created_by", sa.String(36)),
        *_timestamps(),
    )
    op.create_index("ix_drivers_company_id", "drivers", ["company_id"])

    op.create_table(
        "trucks",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("company_id", sa.String(36), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("registration_number", sa.String(50), nullable=False),
        sa.Column("make", sa.String(100)),
        sa.Column("model", sa.String(100)),
        sa.Column("year", sa.Integer()),
        sa.Column("horse_type", sa.String(100)),
        sa.Column("number_of_axles", sa.Integer()),
        sa.Column("is_active", sa.Boolean(), server_default="true"),
        sa.Column("is_verified", sa.Boolean(), server_default="false"),
        sa.Column("created_by", sa.String(36)),
        *_timestamps(),
    )
    op.create_index("ix_trucks_company_id", "trucks", ["company_id"])

    op.create_table(
        "trailers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("company_id", sa.String(36), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("registration_number", sa.String(50), nullable=False),
        sa.Column("trailer_type", sa.Enum(*TRAILER_TYPES, name="trailer_type"), nullable=False),
        sa.Column("make", sa.String(100)),
        sa.Column("model", sa.String(100)),
        sa.Column("year", sa.Integer()),
        sa.Column("length_meters", sa.Float()),
        sa.Column("payload_capacity_tons", sa.Float()),
        sa.Column("is_active", sa.Boolean(), server_default="true"),
        sa.Column("is_verified", sa.Boolean(), server_default="false"),
        sa.Column("created_by", sa.String(36)),
        *_timestamps(),
    )
    op.create_index("ix_trailers_company_id", "trailers", ["company_id"])

    # ── Documents ────────────────────────────────────────────

    op.create_table(
        "documents",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("company_id", sa.String(36), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("driver_id", sa.String(36), sa.ForeignKey("drivers.id")),
        sa.Column("truck_id", sa.String(36), sa.ForeignKey("trucks.id")),
        sa.Column("trailer_id", sa.String(36), sa.ForeignKey("trailers.id")),
        sa.Column("category", sa.Enum(*DOCUMENT_CATEGORIES, name="document_category"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("file_path", sa.String(500), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_size", sa.Integer()),
        sa.Column("mime_type", sa.String(100)),
        sa.Column(
            "status", sa.Enum(*DOCUMENT_STATUSES, name="document_status"),
            nullable=False, server_default="pending",
        ),
        sa.Column("rejection_reason", sa.Text()),
        sa.Column("reviewed_by", sa.String(36)),
        sa.Column("reviewed_at", sa.DateTime()),
        sa.Column("uploaded_by", sa.String(36)),
        *_timestamps(),
        sa.CheckConstraint(
            "(CASE WHEN driver_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN truck_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN trailer_id IS NULL THEN 0 ELSE 1 END) <= 1",
            name="ck_documents_single_parent",
        ),
        sa.CheckConstraint(
            "(status = 'rejected') = (rejection_reason IS NOT NULL)",
            name="ck_documents_rejection_reason",
        ),
    )
    op.create_index("ix_documents_company_id", "documents", ["company_id"])
    op.create_index("ix_documents_driver_id", "documents", ["driver_id"])
    op.create_index("ix_documents_truck_id", "documents", ["truck_id"])
    op.create_index("ix_documents_trailer_id", "documents", ["trailer_id"])
    op.create_index("ix_documents_status", "documents", ["status"])

    # ── Loads ────────────────────────────────────────────────

    op.create_table(
        "loads",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("company_id", sa.String(36), sa.ForeignKey("companies.id")),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("cargo_type", sa.String(100)),
        sa.Column("weight_tons", sa.Float()),
        sa.Column("pickup_address", sa.Text()),
        sa.Column("pickup_city", sa.String(100)),
        sa.Column("pickup_province", sa.String(100)),
        sa.Column("pickup_country", sa.String(100)),
        sa.Column("pickup_lat", sa.Float()),
        sa.Column("pickup_lng", sa.Float()),
        sa.Column("pickup_date", sa.Date()),
        sa.Column("pickup_time_window", sa.String(100)),
        sa.Column("delivery_address", sa.Text()),
        sa.Column("delivery_city", sa.String(100)),
        sa.Column("delivery_province", sa.String(100)),
        sa.Column("delivery_country", sa.String(100)),
        sa.Column("delivery_lat", sa.Float()),
        sa.Column("delivery_lng", sa.Float()),
        sa.Column("delivery_date", sa.Date()),
        sa.Column("delivery_time_window", sa.String(100)),
        sa.Column("required_trailer_type", sa.JSON(), server_default="[]"),
        sa.Column("budget_amount", sa.Float()),
        sa.Column("special_instructions", sa.Text()),
        sa.Column("is_hazardous", sa.Boolean(), server_default="false"),
        sa.Column("cross_border_flagged", sa.Boolean(), server_default="false"),
        sa.Column("is_cross_border", sa.Boolean(), server_default="false"),
        sa.Column(
            "status", sa.Enum(*LOAD_STATUSES, name="load_status"),
            nullable=False, server_default="pending",
        ),
        sa.Column("reviewed_by", sa.String(36)),
        sa.Column("reviewed_at", sa.DateTime()),
        sa.Column("rejection_reason", sa.Text()),
        sa.Column("assigned_transporter_id", sa.String(36), sa.ForeignKey("companies.id")),
        sa.Column(
            "assigned_truck_id", sa.String(36),
            sa.ForeignKey("trucks.id", ondelete="SET NULL"),
        ),
        sa.Column(
            "assigned_driver_id", sa.String(36),
            sa.ForeignKey("drivers.id", ondelete="SET NULL"),
        ),
        sa.Column("created_by", sa.String(36)),
        *_timestamps(),
    )
    op.create_index("ix_loads_company_id", "loads", ["company_id"])
    op.create_index("ix_loads_status", "loads", ["status"])
    op.create_index("ix_loads_created_at", "loads", ["created_at"])

    # ── Activity log ─────────────────────────────────────────

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("profile_id", sa.String(36), nullable=False),
        sa.Column("profile_name", sa.String(255), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(36)),
        sa.Column("summary", sa.Text()),
        sa.Column("details", sa.JSON()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_profile_id", "activity_logs", ["profile_id"])
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])
    op.create_index("ix_activity_logs_entity_type", "activity_logs", ["entity_type"])
    op.create_index("ix_activity_logs_created_at", "activity_logs", ["created_at"])


def downgrade() -> None:
    for table in (
        "activity_logs", "loads", "documents", "trailers", "trucks",
        "drivers", "profiles", "companies",
    ):
        op.drop_table(table)
    for enum_name in (
        "load_status", "document_status", "document_category",
        "trailer_type", "user_role", "company_type",
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
