"""HTTP API for the photo strip renderer."""
