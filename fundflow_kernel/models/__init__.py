"""Domain models for the fundflow kernel."""

from fundflow_kernel.models.request import Request
from fundflow_kernel.models.team import Driver, Transporter
from fundflow_kernel.models.transaction import Transaction

__all__ = [
    "Driver",
    "Request",
    "Transaction",
    "Transporter",
]
