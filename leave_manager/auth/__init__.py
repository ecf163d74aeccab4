"""Auth module — bearer-token identity and role checks."""
