# Services module
from listingops.services.assignment_service import AssignmentService
from listingops.services.reconciliation_service import ReconciliationService
from listingops.services.task_service import TaskService
from listingops.services.analytics_service import AnalyticsService
from listingops.services.listing_completion_service import ListingCompletionService
from listingops.services.compatibility_service import CompatibilityService
from listingops.services.catalog_service import CatalogService

__all__ = [
    "AssignmentService",
    "ReconciliationService",
    "TaskService",
    "AnalyticsService",
    "ListingCompletionService",
    "CompatibilityService",
    "CatalogService",
]
