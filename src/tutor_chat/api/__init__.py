"""HTTP application: app factory, routes, dependencies and middleware."""
