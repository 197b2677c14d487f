"""Audit logging package."""

from savings_fund.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
