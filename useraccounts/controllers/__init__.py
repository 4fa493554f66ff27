"""Request handling for the accounts service."""
