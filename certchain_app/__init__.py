"""Certificate issuance and verification service."""
