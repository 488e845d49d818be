"""
FundFlow Kernel

Record-keeping core for fund movement requests:
- Request lifecycle (team assignment, confirmation gate, status machine)
- Driver / transporter registry with availability and assignment rules
- Fund entry/exit transactions with a one-way confirm/reject state machine
- Confirmed-amount reporting per date range or per request
"""

__version__ = "0.1.0"
