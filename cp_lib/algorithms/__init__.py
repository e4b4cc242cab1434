"""Number theory and general algorithms."""
