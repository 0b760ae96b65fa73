"""Application layer for AuditMarket: ports and services."""
