"""Auth module — identity-provider token verification and role checks."""
