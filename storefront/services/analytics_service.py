import logging
from uuid import UUID

from redis.exceptions import RedisError

from storefront.cache.revenue import revenue_tracker
from storefront.core.exceptions import BadRequestError, ServiceUnavailableError
from storefront.models.dto.analytics import RevenueResponse

logger = logging.getLogger(__name__)

MAX_REPORT_DAYS = 365


async def get_revenue(brand_id: UUID, n_days: int) -> RevenueResponse:
    """Per-day payments and refunds for the last ``n_days`` plus window totals."""
    if not 1 <= n_days <= MAX_REPORT_DAYS:
        raise BadRequestError(f"Reports cover between 1 and {MAX_REPORT_DAYS} days")
    try:
        return await revenue_tracker.report(brand_id, n_days)
    except RedisError:
        logger.exception("Revenue report for brand %s failed", brand_id)
        raise ServiceUnavailableError("Revenue data is temporarily unavailable") from None
