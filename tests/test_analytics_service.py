"""Tests for the per-brand revenue report."""
import uuid
from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from storefront.core.exceptions import BadRequestError, ServiceUnavailableError
from storefront.services.analytics_service import MAX_REPORT_DAYS, get_revenue


@pytest.fixture
def tracker():
    with patch("storefront.services.analytics_service.revenue_tracker") as mock:
        mock.report = AsyncMock()
        yield mock


class TestGetRevenue:
    async def test_returns_report(self, tracker):
        brand_id = uuid.uuid4()
        tracker.report.return_value = "report"

        assert await get_revenue(brand_id, 7) == "report"
        tracker.report.assert_awaited_once_with(brand_id, 7)

    @pytest.mark.parametrize("n_days", [0, MAX_REPORT_DAYS + 1])
    async def test_window_out_of_range(self, tracker, n_days):
        with pytest.raises(BadRequestError):
            await get_revenue(uuid.uuid4(), n_days)
        tracker.report.assert_not_awaited()

    async def test_redis_outage_is_service_unavailable(self, tracker):
        tracker.report.side_effect = RedisConnectionError("connection refused")

        with pytest.raises(ServiceUnavailableError) as exc_info:
            await get_revenue(uuid.uuid4(), 30)
        assert exc_info.value.status_code == 503
