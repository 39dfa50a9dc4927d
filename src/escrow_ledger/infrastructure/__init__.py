"""Infrastructure layer — persistence adapters for the domain."""
