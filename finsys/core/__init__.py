"""Core building blocks shared by the client: backends, config and logging."""
