"""
Tests for the scheduled job entry points.

Services are patched at the point where the jobs module imports them, so
jobs run without any database.
"""

from contextlib import asynccontextmanager
from datetime import date
from unittest.mock import AsyncMock, Mock, patch

import pytest

from staffing_metrics.core.errors import UpstreamUnavailableError
from staffing_metrics.jobs.scheduled import (
    run_hours_refresh,
    run_nightly_cleanup,
    run_weekly_stack_ranking,
)
from staffing_metrics.models.schemas import HoursRunResult, RankingTotals, StackRankingReport


pytestmark = pytest.mark.asyncio


MONDAY = date(2024, 1, 15)


def ranking_service(report: StackRankingReport) -> Mock:
    service = Mock()
    service.calculate_ranking = AsyncMock(return_value=report)
    return service


class TestWeeklyStackRanking:

    async def test_ranks_last_week(self, test_settings) -> None:
        report = StackRankingReport(
            week_start=date(2024, 1, 7),
            week_end=date(2024, 1, 13),
            totals=RankingTotals(),
            snapshot_saved=True,
            new_users=['Drew Park'],
        )
        service = ranking_service(report)

        with patch('staffing_metrics.jobs.scheduled.build_stack_ranking_service', return_value=service):
            result = await run_weekly_stack_ranking(MONDAY, databases=Mock(), settings=test_settings)

        service.calculate_ranking.assert_awaited_once_with(date(2024, 1, 7), date(2024, 1, 13))
        assert result['success'] is True
        assert result['week_start'] == '2024-01-07'
        assert result['new_users'] == ['Drew Park']
        assert result['snapshot_saved'] is True

    async def test_upstream_errors_mark_failure(self, test_settings) -> None:
        report = StackRankingReport(
            week_start=date(2024, 1, 7),
            week_end=date(2024, 1, 13),
            errors=['bullhorn: Bullhorn unavailable: timeout'],
        )

        with patch('staffing_metrics.jobs.scheduled.build_stack_ranking_service',
                   return_value=ranking_service(report)):
            result = await run_weekly_stack_ranking(MONDAY, databases=Mock(), settings=test_settings)

        assert result['success'] is False
        assert result['snapshot_saved'] is False
        assert result['errors'] == ['bullhorn: Bullhorn unavailable: timeout']

    async def test_setup_failure_reported(self, test_settings) -> None:
        service = Mock()
        service.calculate_ranking = AsyncMock(side_effect=UpstreamUnavailableError('report store', 'down'))

        with patch('staffing_metrics.jobs.scheduled.build_stack_ranking_service', return_value=service):
            result = await run_weekly_stack_ranking(MONDAY, databases=Mock(), settings=test_settings)

        assert result['success'] is False
        assert 'report store unavailable' in result['error']

    async def test_opens_databases_when_none_given(self, test_settings) -> None:
        opened = Mock()
        seen = []

        @asynccontextmanager
        async def fake_open(settings):
            seen.append(settings)
            yield opened

        report = StackRankingReport(week_start=date(2024, 1, 7), week_end=date(2024, 1, 13))
        with patch('staffing_metrics.jobs.scheduled.open_databases', fake_open), \
                patch('staffing_metrics.jobs.scheduled.build_stack_ranking_service',
                      return_value=ranking_service(report)) as build:
            await run_weekly_stack_ranking(MONDAY, settings=test_settings)

        assert seen == [test_settings]
        build.assert_called_once_with(opened, test_settings)


class TestHoursRefresh:

    async def test_passes_today(self, test_settings) -> None:
        aggregator = Mock()
        aggregator.calculate_all_hours = AsyncMock(
            return_value=HoursRunResult(processed=21, new_recruiters=['Jordan Lee'], rollover=True)
        )

        with patch('staffing_metrics.jobs.scheduled.build_hours_aggregator', return_value=aggregator):
            result = await run_hours_refresh(MONDAY, databases=Mock(), settings=test_settings)

        aggregator.calculate_all_hours.assert_awaited_once_with(MONDAY)
        assert result['success'] is True
        assert result['processed'] == 21
        assert result['rollover'] is True

    async def test_short_circuit_reason(self, test_settings) -> None:
        aggregator = Mock()
        aggregator.calculate_all_hours = AsyncMock(
            return_value=HoursRunResult(reason='No divisions mapped to Symplr')
        )

        with patch('staffing_metrics.jobs.scheduled.build_hours_aggregator', return_value=aggregator):
            result = await run_hours_refresh(MONDAY, databases=Mock(), settings=test_settings)

        assert result['success'] is False
        assert result['reason'] == 'No divisions mapped to Symplr'


class TestNightlyCleanup:

    async def test_prunes_both_stores(self, test_settings, mock_db: Mock) -> None:
        mock_db.execute.return_value = 'DELETE 4'
        databases = Mock()
        databases.reports = mock_db

        result = await run_nightly_cleanup(MONDAY, databases=databases, settings=test_settings)

        assert result['success'] is True
        assert result['ranking_rows_deleted'] == 4
        assert result['hours_rows_deleted'] == 4
        assert result['ranking_cutoff'] == '2023-10-23'
        assert result['hours_cutoff'] == '2023-12-18'

    async def test_failure_reported(self, test_settings, mock_db: Mock) -> None:
        mock_db.execute.side_effect = OSError('connection reset')
        databases = Mock()
        databases.reports = mock_db

        result = await run_nightly_cleanup(MONDAY, databases=databases, settings=test_settings)

        assert result['success'] is False
        assert 'connection reset' in result['error']
