"""Reconciliation package."""

from intime.reconciliation.service import ReconciliationService

__all__ = ["ReconciliationService"]
