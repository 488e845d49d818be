"""Read-only query selectors for the fundflow kernel."""

from fundflow_kernel.selectors.request_selector import RequestSelector
from fundflow_kernel.selectors.team_selector import TeamSelector
from fundflow_kernel.selectors.transaction_selector import TransactionSelector

__all__ = [
    "RequestSelector",
    "TeamSelector",
    "TransactionSelector",
]
