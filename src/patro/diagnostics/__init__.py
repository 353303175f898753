"""Diagnostics package.

Light-weight command-line checks over the conversion table and the tithi
approximation; run them through `patro diag <tool>`.
"""

__all__ = ["pretty_month", "round_trip", "tithi_scan"]
