"""HTTP layer: blueprints, auth decorators, error handlers and middleware."""
