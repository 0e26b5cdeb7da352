"""HTTP API for the JAM solver."""
