"""
API V1 Router

Aggregates all v1 endpoint routers into a single versioned API.

@.architecture
Incoming: app.py, api/v1/endpoints/*.py --- {app.include_router() call, 3 endpoint router instances}
Processing: api_v1_router.include_router() for 3 endpoints --- {1 job: router_aggregation}
Outgoing: app.py, api/v1/endpoints/*.py --- {APIRouter with /v1 prefix, HTTP request routing to endpoints}
"""

from fastapi import APIRouter

from .endpoints import (
    health_router,
    profiles_router,
    proxies_router,
)

# Create v1 router
api_v1_router = APIRouter(prefix="/v1")

# Health
api_v1_router.include_router(health_router)

# Profiles, enhancement chain, runtime logs, notices
api_v1_router.include_router(profiles_router)

# Proxy groups
api_v1_router.include_router(proxies_router)
