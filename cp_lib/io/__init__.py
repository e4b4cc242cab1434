"""Fast input reading for judge programs."""
