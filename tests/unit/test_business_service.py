from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from localoco.core.database import fetch_concurrently
from localoco.core.errors import BusinessRuleError, StoreError
from localoco.schemas.business import BusinessCreate
from localoco.services.business import BusinessService


@pytest.mark.unit
class TestBusinessService:
    """Unit tests for BusinessService with a mocked session."""

    @pytest.fixture
    def logger(self):
        return MagicMock()

    @pytest.fixture
    def service(self, logger):
        """Create BusinessService instance with an injected logger."""
        return BusinessService(logger=logger)

    @pytest.fixture
    def mock_db_session(self):
        """Mock database session."""
        return AsyncMock(spec=AsyncSession)

    @pytest.fixture
    def sample_business_create(self):
        return BusinessCreate(
            owner_id="user-1",
            uen="53312345A",
            business_name="Kopi Corner",
            business_category="food",
            description="Neighbourhood coffee shop",
            address="1 Tiong Bahru Road",
            latitude="1.284500",
            longitude="103.832100",
            wallpaper_url="https://img.example.com/kopi.png",
            price_tier="low",
        )

    async def test_hydrate_empty_input_issues_no_queries(self, service, mock_db_session):
        with patch(
            "localoco.services.business.fetch_concurrently", new_callable=AsyncMock
        ) as fetch:
            result = await service._hydrate_businesses(mock_db_session, [])

        assert result == []
        fetch.assert_not_awaited()
        mock_db_session.execute.assert_not_awaited()

    async def test_search_with_blank_input_issues_no_queries(self, service, mock_db_session):
        assert await service.search_business_by_name(mock_db_session, "?!") is None

        mock_db_session.execute.assert_not_awaited()

    async def test_register_duplicate_uen_rolls_back(
        self, service, mock_db_session, sample_business_create
    ):
        existing = MagicMock()
        existing.scalar_one_or_none.return_value = "53312345A"
        mock_db_session.execute.return_value = existing

        with pytest.raises(BusinessRuleError):
            await service.register_business(mock_db_session, sample_business_create)

        mock_db_session.rollback.assert_awaited_once()
        mock_db_session.commit.assert_not_awaited()

    async def test_register_store_failure_becomes_store_error(
        self, service, logger, mock_db_session, sample_business_create
    ):
        mock_db_session.execute.side_effect = OperationalError(
            "SELECT", {}, Exception("connection lost")
        )

        with pytest.raises(StoreError):
            await service.register_business(mock_db_session, sample_business_create)

        mock_db_session.rollback.assert_awaited_once()
        logger.error.assert_called_once()


@pytest.mark.unit
async def test_fetch_concurrently_releases_request_transaction_first():
    db = MagicMock()
    db.commit = AsyncMock()

    rows = await fetch_concurrently(db, None, None)

    assert rows == [[], []]
    db.commit.assert_awaited_once()
