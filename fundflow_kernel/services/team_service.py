"""
TeamService -- the driver and transporter registry.

Responsibility:
    Creates, edits and deletes team members, toggles their availability,
    and links them to or unlinks them from requests.  Drivers and
    transporters follow identical rules; each public method is a thin
    wrapper over a role-parameterized helper.

Architecture position:
    Kernel > Services -- imperative shell.  Flushes, never commits.

Invariants enforced:
    - matricule and cin are unique within each role.
    - A member with associated requests cannot be deleted.
    - Assignment requires an available member and a free role slot.
    - A member cannot be removed from a CONFIRMED or COMPLETED request.
    - Every link/unlink updates Request.driver / Request.transporter and
      the member's ``requests`` set in the same flush.

Failure modes:
    - DriverNotFoundError / TransporterNotFoundError / RequestNotFoundError.
    - ValidationError, DuplicateKeyError, AssociatedRequestsError,
      ActiveRequestsError, TeamMemberUnavailableError,
      RoleAlreadyAssignedError, TeamMemberNotAssignedError,
      UnassignmentNotAllowedError.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select

from fundflow_kernel.domain.dtos import (
    DriverData,
    DriverInfo,
    TransporterData,
    TransporterInfo,
)
from fundflow_kernel.domain.employee import EmployeeIdentity
from fundflow_kernel.domain.lifecycle import (
    INACTIVE_REQUEST_STATUSES,
    UNASSIGN_LOCKED_STATUSES,
    RequestStatus,
    TeamRole,
)
from fundflow_kernel.exceptions import (
    ActiveRequestsError,
    AssociatedRequestsError,
    DriverNotFoundError,
    DuplicateKeyError,
    EntityNotFoundError,
    RequestNotFoundError,
    RoleAlreadyAssignedError,
    TeamMemberNotAssignedError,
    TeamMemberUnavailableError,
    TransporterNotFoundError,
    UnassignmentNotAllowedError,
    ValidationError,
)
from fundflow_kernel.logging_config import get_logger
from fundflow_kernel.models.request import Request
from fundflow_kernel.models.team import Driver, Transporter
from fundflow_kernel.services.base import BaseService, rejected

logger = get_logger("services.team")

Member = Driver | Transporter


@dataclass(frozen=True)
class _RoleSpec:
    """What differs between the driver and transporter code paths."""

    role: TeamRole
    model: type
    not_found: type[EntityNotFoundError]
    info: type
    slot: str  # Request attribute holding this role
    detail: str  # Role-specific column


_DRIVER = _RoleSpec(
    role=TeamRole.DRIVER,
    model=Driver,
    not_found=DriverNotFoundError,
    info=DriverInfo,
    slot="driver",
    detail="license_number",
)

_TRANSPORTER = _RoleSpec(
    role=TeamRole.TRANSPORTER,
    model=Transporter,
    not_found=TransporterNotFoundError,
    info=TransporterInfo,
    slot="transporter",
    detail="vehicle_type",
)


class TeamService(BaseService[Driver]):
    """
    Service for managing drivers and transporters.

    All public methods return DriverInfo / TransporterInfo DTOs, not ORM
    entities.
    """

    # =========================================================================
    # Shared helpers
    # =========================================================================

    def _get_member(self, spec: _RoleSpec, member_id: UUID) -> Member:
        member = self.session.get(spec.model, member_id)
        if member is None:
            raise rejected(
                logger, f"get_{spec.slot}", spec.not_found(member_id)
            )
        return member

    def _get_request(self, request_id: UUID) -> Request:
        request = self.session.get(Request, request_id)
        if request is None:
            raise rejected(logger, "get_request", RequestNotFoundError(request_id))
        return request

    def _validate_identity(self, operation: str, identity: EmployeeIdentity) -> None:
        try:
            identity.validate()
        except ValidationError as exc:
            raise rejected(logger, operation, exc)

    def _check_unique(
        self,
        spec: _RoleSpec,
        operation: str,
        identity: EmployeeIdentity,
        exclude_id: UUID | None = None,
    ) -> None:
        for field in ("cin", "matricule"):
            value = getattr(identity, field)
            stmt = select(spec.model.id).where(getattr(spec.model, field) == value)
            if exclude_id is not None:
                stmt = stmt.where(spec.model.id != exclude_id)
            if self.session.execute(stmt).first() is not None:
                raise rejected(
                    logger,
                    operation,
                    DuplicateKeyError(spec.role.value, field, value),
                )

    def _create(self, spec: _RoleSpec, data: DriverData | TransporterData):
        operation = f"create_{spec.slot}"
        identity = data.identity
        self._validate_identity(operation, identity)
        self._check_unique(spec, operation, identity)

        member = spec.model(identity=identity, available=data.available)
        setattr(member, spec.detail, getattr(data, spec.detail))
        self.session.add(member)
        self.session.flush()

        logger.info(
            f"{spec.slot}_created",
            extra={"member_id": str(member.id), "matricule": member.matricule},
        )
        return spec.info.from_model(member)

    def _update(self, spec: _RoleSpec, member_id: UUID, data: DriverData | TransporterData):
        operation = f"update_{spec.slot}"
        member = self._get_member(spec, member_id)
        identity = data.identity
        self._validate_identity(operation, identity)
        self._check_unique(spec, operation, identity, exclude_id=member.id)

        member.identity = identity
        setattr(member, spec.detail, getattr(data, spec.detail))
        member.available = data.available
        self.session.flush()

        logger.info(
            f"{spec.slot}_updated",
            extra={"member_id": str(member.id), "matricule": member.matricule},
        )
        return spec.info.from_model(member)

    def _delete(self, spec: _RoleSpec, member_id: UUID) -> None:
        member = self._get_member(spec, member_id)
        if member.requests:
            raise rejected(
                logger,
                f"delete_{spec.slot}",
                AssociatedRequestsError(
                    spec.role.value, member.matricule, len(member.requests)
                ),
            )

        self.session.delete(member)
        self.session.flush()
        logger.info(
            f"{spec.slot}_deleted",
            extra={"member_id": str(member_id), "matricule": member.matricule},
        )

    def _toggle(self, spec: _RoleSpec, member_id: UUID):
        member = self._get_member(spec, member_id)

        # Only an unavailable member with open work is blocked.
        if not member.available and any(
            r.status not in INACTIVE_REQUEST_STATUSES for r in member.requests
        ):
            raise rejected(
                logger,
                f"toggle_{spec.slot}_availability",
                ActiveRequestsError(spec.role.value, member.matricule),
            )

        member.available = not member.available
        self.session.flush()
        logger.info(
            f"{spec.slot}_availability_toggled",
            extra={"matricule": member.matricule, "available": member.available},
        )
        return spec.info.from_model(member)

    def _assign(self, spec: _RoleSpec, member_id: UUID, request_id: UUID):
        operation = f"assign_{spec.slot}_to_request"
        member = self._get_member(spec, member_id)
        request = self._get_request(request_id)

        if not member.available:
            raise rejected(
                logger,
                operation,
                TeamMemberUnavailableError(spec.role.value, member.matricule),
            )
        if getattr(request, spec.slot) is not None:
            raise rejected(
                logger,
                operation,
                RoleAlreadyAssignedError(spec.role.value, request.request_number),
            )

        setattr(request, spec.slot, member)
        if request.has_full_team:
            request.status = RequestStatus.ASSIGNED.value
        self.session.flush()

        logger.info(
            f"{spec.slot}_assigned",
            extra={
                "matricule": member.matricule,
                "request_number": request.request_number,
                "status": request.status,
            },
        )
        return spec.info.from_model(member)

    def _unassign(self, spec: _RoleSpec, member_id: UUID, request_id: UUID) -> None:
        operation = f"unassign_{spec.slot}_from_request"
        member = self._get_member(spec, member_id)
        request = self._get_request(request_id)

        if getattr(request, spec.slot) is not member:
            raise rejected(
                logger,
                operation,
                TeamMemberNotAssignedError(
                    spec.role.value, member.matricule, request.request_number
                ),
            )
        if request.status in UNASSIGN_LOCKED_STATUSES:
            raise rejected(
                logger,
                operation,
                UnassignmentNotAllowedError(
                    spec.role.value, request.request_number, request.status
                ),
            )

        setattr(request, spec.slot, None)
        request.status = RequestStatus.PENDING.value
        self.session.flush()

        logger.info(
            f"{spec.slot}_unassigned",
            extra={
                "matricule": member.matricule,
                "request_number": request.request_number,
            },
        )

    # =========================================================================
    # Drivers
    # =========================================================================

    def create_driver(self, data: DriverData) -> DriverInfo:
        """
        Register a driver.

        Raises:
            ValidationError: If an identity field is blank.
            DuplicateKeyError: If the cin or matricule is already used.
        """
        return self._create(_DRIVER, data)

    def update_driver(self, driver_id: UUID, data: DriverData) -> DriverInfo:
        """Overwrite every field of a driver, availability included."""
        return self._update(_DRIVER, driver_id, data)

    def delete_driver(self, driver_id: UUID) -> None:
        """
        Delete a driver with no associated requests.

        Raises:
            DriverNotFoundError: If the driver doesn't exist.
            AssociatedRequestsError: If the driver is on any request.
        """
        self._delete(_DRIVER, driver_id)

    def toggle_driver_availability(self, driver_id: UUID) -> DriverInfo:
        return self._toggle(_DRIVER, driver_id)

    def assign_driver_to_request(self, driver_id: UUID, request_id: UUID) -> DriverInfo:
        """
        Put an available driver on a request that has none.

        Status becomes ASSIGNED if the request already has a transporter.

        Raises:
            TeamMemberUnavailableError: If the driver is unavailable.
            RoleAlreadyAssignedError: If the request already has a driver.
        """
        return self._assign(_DRIVER, driver_id, request_id)

    def unassign_driver_from_request(self, driver_id: UUID, request_id: UUID) -> None:
        """
        Take a driver off a request and reset the request to PENDING.

        Raises:
            TeamMemberNotAssignedError: If the driver is not on the request.
            UnassignmentNotAllowedError: If the request is CONFIRMED or
                COMPLETED.
        """
        self._unassign(_DRIVER, driver_id, request_id)

    # =========================================================================
    # Transporters
    # =========================================================================

    def create_transporter(self, data: TransporterData) -> TransporterInfo:
        """Register a transporter. Same rules as create_driver."""
        return self._create(_TRANSPORTER, data)

    def update_transporter(
        self, transporter_id: UUID, data: TransporterData
    ) -> TransporterInfo:
        return self._update(_TRANSPORTER, transporter_id, data)

    def delete_transporter(self, transporter_id: UUID) -> None:
        self._delete(_TRANSPORTER, transporter_id)

    def toggle_transporter_availability(self, transporter_id: UUID) -> TransporterInfo:
        return self._toggle(_TRANSPORTER, transporter_id)

    def assign_transporter_to_request(
        self, transporter_id: UUID, request_id: UUID
    ) -> TransporterInfo:
        """Put an available transporter on a request that has none."""
        return self._assign(_TRANSPORTER, transporter_id, request_id)

    def unassign_transporter_from_request(
        self, transporter_id: UUID, request_id: UUID
    ) -> None:
        self._unassign(_TRANSPORTER, transporter_id, request_id)
