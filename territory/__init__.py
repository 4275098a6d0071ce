"""Territory assignment and lifecycle engine."""
