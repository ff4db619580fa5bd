"""Offline budget editing: pending-change ledger, reconciliation, installments and sync."""

__version__ = "0.1.0"
