"""Bootstrap wiring: database, logging and service assembly."""
