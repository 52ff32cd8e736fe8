"""Face matching service for event photo galleries."""
