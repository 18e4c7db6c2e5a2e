"""HTTP API blueprint for CardSync."""
