from fastapi import APIRouter

from listingops.api.v1.endpoints import (
    # Listing workflow
    tasks,
    assignments,
    listing_completions,
    # Workload reports
    store_wise_tasks,
    lister_info,
    # Compatibility follow-up
    compatibility,
    # Reference data
    catalog,
    users,
)


# Create main API router
api_router = APIRouter(prefix="/api")

# ==================== Tasks (product research) ====================
api_router.include_router(
    tasks.router,
    prefix="/tasks",
)

# ==================== Assignments & reconciliation ====================
api_router.include_router(
    assignments.router,
    prefix="/assignments",
)

# ==================== Listing Completions ====================
api_router.include_router(
    listing_completions.router,
    prefix="/listing-completions",
)

# ==================== Workload reports ====================
api_router.include_router(
    store_wise_tasks.router,
    prefix="/store-wise-tasks",
)
api_router.include_router(
    lister_info.router,
    prefix="/lister-info",
)

# ==================== Compatibility ====================
api_router.include_router(
    compatibility.router,
    prefix="/compatibility",
)

# ==================== Catalog ====================
api_router.include_router(
    catalog.router,
    tags=["Catalog"]
)

# ==================== Users ====================
api_router.include_router(
    users.router,
    prefix="/users",
)
