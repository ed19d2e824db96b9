"""HTTP layer: the FastAPI application (api.app) and its route modules."""
