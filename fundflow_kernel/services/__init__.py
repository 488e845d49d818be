"""Write services for the fundflow kernel."""

from fundflow_kernel.services.funds_service import FundsService
from fundflow_kernel.services.request_service import RequestService
from fundflow_kernel.services.team_service import TeamService

__all__ = [
    "FundsService",
    "RequestService",
    "TeamService",
]
