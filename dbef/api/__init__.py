"""HTTP API for the DBEF gateway."""
