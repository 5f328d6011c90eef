"""Multi-path RSS fetching with a first-success race."""
