"""HTTP API for cave generation and contouring."""
