"""REST API for the modgov engine."""
