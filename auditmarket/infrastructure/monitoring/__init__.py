"""Operational metrics for the audit pipeline."""
