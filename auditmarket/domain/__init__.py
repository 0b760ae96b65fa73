"""Domain layer for AuditMarket: models, state machine and error taxonomy."""
