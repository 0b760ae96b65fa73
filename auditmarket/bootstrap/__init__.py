"""Bootstrap wiring: database, logging and marketplace assembly."""
