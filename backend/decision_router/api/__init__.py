"""API Layer: FastAPI routers and error handlers."""
