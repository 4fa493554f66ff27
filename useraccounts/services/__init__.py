"""Service integrations: tokens, cookies, session, user store, notifications."""
