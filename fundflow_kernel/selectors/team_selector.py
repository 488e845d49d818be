"""
Module: fundflow_kernel.selectors.team_selector
Responsibility: Read-only queries over drivers and transporters.
Architecture position: Kernel > Selectors.

Lists are ordered by last name, first name, then matricule.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Select, func, select

from fundflow_kernel.domain.dtos import DriverInfo, TransporterInfo
from fundflow_kernel.exceptions import (
    DriverNotFoundError,
    RequestNotFoundError,
    TransporterNotFoundError,
)
from fundflow_kernel.models.request import Request
from fundflow_kernel.models.team import Driver, Transporter
from fundflow_kernel.selectors.base import BaseSelector


class TeamSelector(BaseSelector[Driver]):
    """Read-only queries for team members."""

    def _drivers(self, stmt: Select) -> list[DriverInfo]:
        stmt = stmt.order_by(Driver.last_name, Driver.first_name, Driver.matricule)
        return [DriverInfo.from_model(d) for d in self._all(stmt)]

    def _transporters(self, stmt: Select) -> list[TransporterInfo]:
        stmt = stmt.order_by(
            Transporter.last_name, Transporter.first_name, Transporter.matricule
        )
        return [
            TransporterInfo.from_model(t)
            for t in self._all(stmt)
        ]

    def _get_request(self, request_id: UUID) -> Request:
        request = self.session.get(Request, request_id)
        if request is None:
            raise RequestNotFoundError(request_id)
        return request

    # =========================================================================
    # Drivers
    # =========================================================================

    def get_driver(self, driver_id: UUID) -> DriverInfo:
        """
        Raises:
            DriverNotFoundError: If the driver doesn't exist.
        """
        driver = self.session.get(Driver, driver_id)
        if driver is None:
            raise DriverNotFoundError(driver_id)
        return DriverInfo.from_model(driver)

    def get_driver_by_matricule(self, matricule: str) -> DriverInfo:
        driver = self._one_or_none(
            select(Driver).where(Driver.matricule == matricule)
        )
        if driver is None:
            raise DriverNotFoundError(matricule, field="matricule")
        return DriverInfo.from_model(driver)

    def get_driver_by_cin(self, cin: str) -> DriverInfo:
        driver = self._one_or_none(
            select(Driver).where(Driver.cin == cin)
        )
        if driver is None:
            raise DriverNotFoundError(cin, field="cin")
        return DriverInfo.from_model(driver)

    def list_drivers(self) -> list[DriverInfo]:
        return self._drivers(select(Driver))

    def list_available_drivers(self) -> list[DriverInfo]:
        return self._drivers(select(Driver).where(Driver.available.is_(True)))

    def list_drivers_by_license_number(self, license_number: str) -> list[DriverInfo]:
        return self._drivers(select(Driver).where(Driver.license_number == license_number))

    def search_drivers_by_last_name(self, fragment: str) -> list[DriverInfo]:
        """Drivers whose last name contains ``fragment``, ignoring case."""
        pattern = f"%{fragment.lower()}%"
        return self._drivers(select(Driver).where(func.lower(Driver.last_name).like(pattern)))

    def drivers_for_request(self, request_id: UUID) -> list[DriverInfo]:
        """
        The driver of a request as a zero- or one-element list.

        Raises:
            RequestNotFoundError: If the request doesn't exist.
        """
        request = self._get_request(request_id)
        return [DriverInfo.from_model(request.driver)] if request.driver else []

    # =========================================================================
    # Transporters
    # =========================================================================

    def get_transporter(self, transporter_id: UUID) -> TransporterInfo:
        """
        Raises:
            TransporterNotFoundError: If the transporter doesn't exist.
        """
        transporter = self.session.get(Transporter, transporter_id)
        if transporter is None:
            raise TransporterNotFoundError(transporter_id)
        return TransporterInfo.from_model(transporter)

    def get_transporter_by_matricule(self, matricule: str) -> TransporterInfo:
        transporter = self._one_or_none(
            select(Transporter).where(Transporter.matricule == matricule)
        )
        if transporter is None:
            raise TransporterNotFoundError(matricule, field="matricule")
        return TransporterInfo.from_model(transporter)

    def get_transporter_by_cin(self, cin: str) -> TransporterInfo:
        transporter = self._one_or_none(
            select(Transporter).where(Transporter.cin == cin)
        )
        if transporter is None:
            raise TransporterNotFoundError(cin, field="cin")
        return TransporterInfo.from_model(transporter)

    def list_transporters(self) -> list[TransporterInfo]:
        return self._transporters(select(Transporter))

    def list_available_transporters(self) -> list[TransporterInfo]:
        return self._transporters(select(Transporter).where(Transporter.available.is_(True)))

    def list_transporters_by_vehicle_type(self, vehicle_type: str) -> list[TransporterInfo]:
        return self._transporters(
            select(Transporter).where(Transporter.vehicle_type == vehicle_type)
        )

    def search_transporters_by_last_name(self, fragment: str) -> list[TransporterInfo]:
        pattern = f"%{fragment.lower()}%"
        return self._transporters(
            select(Transporter).where(func.lower(Transporter.last_name).like(pattern))
        )

    def transporters_for_request(self, request_id: UUID) -> list[TransporterInfo]:
        """
        The transporter of a request as a zero- or one-element list.

        Raises:
            RequestNotFoundError: If the request doesn't exist.
        """
        request = self._get_request(request_id)
        return [TransporterInfo.from_model(request.transporter)] if request.transporter else []
