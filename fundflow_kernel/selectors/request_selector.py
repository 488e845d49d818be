"""
Module: fundflow_kernel.selectors.request_selector
Responsibility: Read-only queries over requests.
Architecture position: Kernel > Selectors.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import Select, select

from fundflow_kernel.domain.dtos import RequestInfo
from fundflow_kernel.domain.lifecycle import REQUEST_STATUSES, RequestStatus
from fundflow_kernel.exceptions import InvalidStatusError, RequestNotFoundError
from fundflow_kernel.models.request import Request
from fundflow_kernel.selectors.base import BaseSelector


class RequestSelector(BaseSelector[Request]):
    """
    Read-only queries for requests.

    Lists are ordered by request_date then request_number.
    """

    def _list(self, stmt: Select) -> list[RequestInfo]:
        stmt = stmt.order_by(Request.request_date, Request.request_number)
        return [RequestInfo.from_model(r) for r in self._all(stmt)]

    def get_by_id(self, request_id: UUID) -> RequestInfo:
        """
        Raises:
            RequestNotFoundError: If the request doesn't exist.
        """
        request = self.session.get(Request, request_id)
        if request is None:
            raise RequestNotFoundError(request_id)
        return RequestInfo.from_model(request)

    def get_by_number(self, request_number: str) -> RequestInfo:
        """
        Raises:
            RequestNotFoundError: If no request has this number.
        """
        request = self._one_or_none(
            select(Request).where(Request.request_number == request_number)
        )
        if request is None:
            raise RequestNotFoundError(request_number, field="request_number")
        return RequestInfo.from_model(request)

    def list_all(self) -> list[RequestInfo]:
        return self._list(select(Request))

    def list_by_status(self, status: str | RequestStatus) -> list[RequestInfo]:
        value = status.value if isinstance(status, RequestStatus) else status
        if value not in REQUEST_STATUSES:
            raise InvalidStatusError(status, REQUEST_STATUSES)
        return self._list(select(Request).where(Request.status == value))

    def list_by_type(self, request_type: str) -> list[RequestInfo]:
        return self._list(select(Request).where(Request.request_type == request_type))

    def list_by_date(self, request_date: date) -> list[RequestInfo]:
        return self._list(select(Request).where(Request.request_date == request_date))

    def list_by_confirmed(self, confirmed: bool) -> list[RequestInfo]:
        """Requests whose confirmed flag equals ``confirmed``; NULL matches neither."""
        return self._list(select(Request).where(Request.confirmed.is_(confirmed)))

    def list_by_driver(self, driver_id: UUID) -> list[RequestInfo]:
        return self._list(select(Request).where(Request.driver_id == driver_id))

    def list_by_transporter(self, transporter_id: UUID) -> list[RequestInfo]:
        return self._list(select(Request).where(Request.transporter_id == transporter_id))

    def list_by_creator(self, created_by: str) -> list[RequestInfo]:
        return self._list(select(Request).where(Request.created_by == created_by))
