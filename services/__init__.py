"""Credential core: token issuance, rotation, revocation and the session guard."""
