"""Web API: FastAPI app, dependencies and route handlers."""
