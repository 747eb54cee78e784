"""Role Gate: who may invoke which workflow action on which target.

Design:
  - ``authorize(actor, action, target)`` is a pure decision function.  It
    never raises and never touches the database; a denial is a normal
    outcome carrying a user-facing reason.
  - Services build the ``Target`` from rows they already loaded and call
    ``ensure(...)``, which turns a denial into ``PermissionDeniedError``.

Rules, evaluated in order:
  1. admin         → allowed, except creating records under another
                     profile's identity.
  2. foreign row   → a non-admin acting on another company's entity is
                     denied, except reading an approved load (transporters)
                     and reading a company's verification flag.
  3. admin-only    → review / verify / advance / profile management actions
                     are denied to non-admins regardless of ownership.
  4. role fit      → fleet actions need a transporter, load creation a
                     supplier, and every non-admin write needs a company.
  5. otherwise     → allowed.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Protocol

from app.middleware.exceptions import PermissionDeniedError
from app.models.load import LoadStatus
from app.models.profile import UserRole


class Action(str, enum.Enum):
    # Company
    COMPANY_CREATE = "company.create"
    COMPANY_READ = "company.read"
    COMPANY_READ_VERIFICATION = "company.read_verification"
    COMPANY_UPDATE = "company.update"
    COMPANY_VERIFY = "company.verify"
    COMPANY_LINK_PROFILE = "company.link_profile"

    # Fleet
    FLEET_CREATE = "fleet.create"
    FLEET_READ = "fleet.read"
    FLEET_UPDATE = "fleet.update"
    FLEET_DELETE = "fleet.delete"
    FLEET_VERIFY = "fleet.verify"

    # Documents
    DOCUMENT_UPLOAD = "document.upload"
    DOCUMENT_READ = "document.read"
    DOCUMENT_UPDATE = "document.update"
    DOCUMENT_REVIEW = "document.review"
    DOCUMENT_DELETE = "document.delete"

    # Loads
    LOAD_CREATE = "load.create"
    LOAD_PUBLISH = "load.publish"
    LOAD_READ = "load.read"
    LOAD_UPDATE = "load.update"
    LOAD_DELETE = "load.delete"
    LOAD_REVIEW = "load.review"
    LOAD_ADVANCE = "load.advance"
    LOAD_CANCEL = "load.cancel"

    # Profiles / platform
    PROFILE_DISABLE = "profile.disable"
    PROFILE_PURGE = "profile.purge"
    PLATFORM_STATS = "platform.stats"


ADMIN_ONLY: frozenset[Action] = frozenset({
    Action.COMPANY_VERIFY,
    Action.COMPANY_LINK_PROFILE,
    Action.FLEET_VERIFY,
    Action.DOCUMENT_REVIEW,
    Action.LOAD_PUBLISH,
    Action.LOAD_REVIEW,
    Action.LOAD_ADVANCE,
    Action.LOAD_CANCEL,
    Action.PROFILE_DISABLE,
    Action.PROFILE_PURGE,
    Action.PLATFORM_STATS,
})

CREATE_ACTIONS: frozenset[Action] = frozenset({
    Action.COMPANY_CREATE,
    Action.FLEET_CREATE,
    Action.LOAD_CREATE,
})

FLEET_ACTIONS: frozenset[Action] = frozenset({
    Action.FLEET_CREATE,
    Action.FLEET_UPDATE,
    Action.FLEET_DELETE,
})

LOAD_ENTITY_ACTIONS: frozenset[Action] = frozenset({
    Action.LOAD_READ,
    Action.LOAD_UPDATE,
    Action.LOAD_DELETE,
})


class Actor(Protocol):
    id: str
    role: UserRole
    company_id: str | None


@dataclass(frozen=True)
class Target:
    """What an action is aimed at.

    ``company_id`` is the owning company of the entity (None for an
    admin-authored load or a company not yet created).  ``acting_as`` is
    the profile identity a new record would be authored under.
    """
    company_id: str | None = None
    company_type: str | None = None
    load_status: LoadStatus | None = None
    acting_as: str | None = None


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def _deny(reason: str) -> Decision:
    return Decision(False, reason)


def _is_public_read(actor: Actor, action: Action, target: Target) -> bool:
    if action == Action.COMPANY_READ_VERIFICATION:
        return True
    return (
        action == Action.LOAD_READ
        and actor.role == UserRole.TRANSPORTER
        and target.load_status == LoadStatus.APPROVED
    )


def authorize(actor: Actor, action: Action, target: Target | None = None) -> Decision:
    """Decide whether ``actor`` may perform ``action`` on ``target``."""
    target = target or Target()

    # 1. Admin
    if actor.role == UserRole.ADMIN:
        if action in CREATE_ACTIONS and target.acting_as not in (None, actor.id):
            return _deny("Records cannot be created under another profile's identity")
        return ALLOW

    # 2. Foreign company (a load with no company belongs to the platform)
    platform_load = action in LOAD_ENTITY_ACTIONS and target.company_id is None
    if platform_load or (
        target.company_id is not None and target.company_id != actor.company_id
    ):
        if _is_public_read(actor, action, target):
            return ALLOW
        return _deny("This record belongs to another company")

    # 3. Admin-reserved
    if action in ADMIN_ONLY:
        return _deny("Only a platform admin can perform this action")

    # 4. Role fit
    if target.acting_as not in (None, actor.id):
        return _deny("Records cannot be created under another profile's identity")

    if action == Action.COMPANY_CREATE:
        if actor.company_id is not None:
            return _deny("Your profile is already linked to a company")
        if target.company_type is not None and target.company_type != actor.role.value:
            return _deny(f"A {actor.role.value} can only register a {actor.role.value} company")
        return ALLOW

    if action == Action.COMPANY_READ_VERIFICATION:
        return ALLOW

    if actor.company_id is None:
        return _deny("Complete your company profile first")

    if action in FLEET_ACTIONS and actor.role != UserRole.TRANSPORTER:
        return _deny("Only transporters manage fleet assets")

    if action == Action.LOAD_CREATE and actor.role != UserRole.SUPPLIER:
        return _deny("Only suppliers can post loads")

    # 5. Otherwise
    return ALLOW


def ensure(actor: Actor, action: Action, target: Target | None = None) -> None:
    """Raise ``PermissionDeniedError`` with the gate's reason on denial."""
    decision = authorize(actor, action, target)
    if not decision.allowed:
        raise PermissionDeniedError(decision.reason or "Permission denied")
