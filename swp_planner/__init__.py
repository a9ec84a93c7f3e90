"""Retirement withdrawal planner: projection, amortization, SWP simulation and XIRR."""

__version__ = "0.1.0"
