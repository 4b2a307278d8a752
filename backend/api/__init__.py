"""HTTP surface of the session service."""
