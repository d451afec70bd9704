"""Output layer — renders ServiceResult for humans or as JSON."""
