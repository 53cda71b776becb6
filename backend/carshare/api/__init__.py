"""HTTP API for the CarShare system."""
