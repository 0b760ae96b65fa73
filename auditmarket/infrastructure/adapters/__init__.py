"""Production adapters for AuditMarket's external collaborators."""
