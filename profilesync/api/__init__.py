"""
API Layer - FastAPI routers, dependencies and middleware.
"""
