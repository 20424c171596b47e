"""
Tests for the Identity Resolver and role inference.
"""

from unittest.mock import AsyncMock

import pytest

from staffing_metrics.core.errors import UpstreamUnavailableError
from staffing_metrics.models.enums import AtsSystem, RecruiterRole
from staffing_metrics.services.identity import (
    STACK_RANKING_DISCOVERY,
    IdentityResolver,
    hours_discovery_defaults,
    infer_role,
)
from staffing_metrics.tests.conftest import (
    ALLIED,
    NURSING,
    FakeAdapter,
    FakeUserRepository,
    make_user,
    symplr_fact,
)


@pytest.fixture
def adapters():
    return {
        AtsSystem.SYMPLR: FakeAdapter(AtsSystem.SYMPLR, titles={101: 'Travel Nurse Recruiter'}),
        AtsSystem.BULLHORN: FakeAdapter(
            AtsSystem.BULLHORN,
            titles={500: 'Senior Account Executive'},
            departments={500: '  allied health ', 501: 'Marketing'},
        ),
    }


# =============================================================================
# Role Inference
# =============================================================================


class TestInferRole:

    @pytest.mark.parametrize("title", [
        "Recruiter",
        "Senior Travel RECRUITER",
        "Staffing Specialist II",
        "Talent Acquisition Partner",
        "Technical Sourcer",
    ])
    def test_recruiter_titles(self, title: str) -> None:
        assert infer_role(title) == RecruiterRole.RECRUITER

    @pytest.mark.parametrize("title", [
        "Account Manager",
        "Account Executive",
        "VP of Sales",
        "Business Development Lead",
        "Client Manager",
    ])
    def test_account_manager_titles(self, title: str) -> None:
        assert infer_role(title) == RecruiterRole.ACCOUNT_MANAGER

    def test_recruiter_keywords_win(self) -> None:
        assert infer_role("Sales Recruiter") == RecruiterRole.RECRUITER

    @pytest.mark.parametrize("title", [None, "", "Payroll Coordinator"])
    def test_unknown(self, title) -> None:
        assert infer_role(title) == RecruiterRole.UNKNOWN


# =============================================================================
# Resolution
# =============================================================================


class TestResolveOrCreate:

    async def test_existing_identity_is_returned(self, adapters, divisions) -> None:
        alex = make_user(1, 'Alex Kim', symplr_id=101)
        users = FakeUserRepository([alex], divisions)
        resolver = IdentityResolver(users, adapters)

        identity = await resolver.resolve_or_create(AtsSystem.SYMPLR, 101, 'Alex Kim', NURSING)

        assert identity == alex
        assert resolver.created == []
        assert users.create_calls == []

    async def test_merged_identity_resolves_from_both_systems(self, adapters, divisions) -> None:
        merged = make_user(1, 'Alex Kim', symplr_id=101, bullhorn_id=500)
        resolver = IdentityResolver(FakeUserRepository([merged], divisions), adapters)

        from_symplr = await resolver.resolve_or_create(AtsSystem.SYMPLR, 101)
        from_bullhorn = await resolver.resolve_or_create(AtsSystem.BULLHORN, 500)

        assert from_symplr.config_id == from_bullhorn.config_id == 1

    async def test_discovery_creates_symplr_user(self, adapters, divisions) -> None:
        users = FakeUserRepository([], divisions)
        resolver = IdentityResolver(users, adapters)

        identity = await resolver.resolve_or_create(AtsSystem.SYMPLR, 101, 'Alex Kim', NURSING)

        assert identity.symplr_id == 101
        assert identity.bullhorn_id is None
        assert identity.canonical_user_id == 101
        assert identity.role == RecruiterRole.RECRUITER
        assert identity.title == 'Travel Nurse Recruiter'
        assert identity.ats_source == AtsSystem.SYMPLR
        assert identity.division_id == NURSING
        assert identity.on_stack_ranking is True
        assert identity.on_hours_report is False
        assert resolver.created == [identity]

    async def test_discovery_happens_once_per_ats_id(self, adapters, divisions) -> None:
        users = FakeUserRepository([], divisions)
        resolver = IdentityResolver(users, adapters)
        facts = [
            symplr_fact(101, 100.0, 50.0, name='Alex Kim'),
            symplr_fact(101, 200.0, 80.0, name='Alex Kim'),
            symplr_fact(101, 300.0, 90.0, name='Alex Kim'),
        ]

        await resolver.resolve_all(facts)

        assert len(users.create_calls) == 1
        assert users.find_calls == [(AtsSystem.SYMPLR, 101)]
        assert resolver.lookup(AtsSystem.SYMPLR, 101).name == 'Alex Kim'

    async def test_missing_name_gets_placeholder(self, adapters, divisions) -> None:
        resolver = IdentityResolver(FakeUserRepository([], divisions), adapters)

        identity = await resolver.resolve_or_create(AtsSystem.SYMPLR, 202, '  ', NURSING)

        assert identity.name == 'User 202'

    async def test_bullhorn_department_overrides_division(self, adapters, divisions) -> None:
        resolver = IdentityResolver(FakeUserRepository([], divisions), adapters)

        identity = await resolver.resolve_or_create(AtsSystem.BULLHORN, 500, 'Dana Reyes', NURSING)

        assert identity.division_id == ALLIED
        assert identity.role == RecruiterRole.ACCOUNT_MANAGER
        assert identity.bullhorn_id == 500

    async def test_unmatched_department_keeps_observed_division(self, adapters, divisions) -> None:
        resolver = IdentityResolver(FakeUserRepository([], divisions), adapters)

        identity = await resolver.resolve_or_create(AtsSystem.BULLHORN, 501, 'Sam Ortiz', ALLIED)

        assert identity.division_id == ALLIED
        assert identity.role == RecruiterRole.UNKNOWN

    async def test_no_division_falls_back_to_default(self, adapters, divisions) -> None:
        resolver = IdentityResolver(FakeUserRepository([], divisions), adapters, default_division_id=7)

        identity = await resolver.resolve_or_create(AtsSystem.SYMPLR, 101, 'Alex Kim', None)

        assert identity.division_id == 7


class TestDeadLetter:

    async def test_deactivated_identity_is_not_rediscovered(self, adapters, divisions) -> None:
        retired = make_user(1, 'Pat Lee', symplr_id=101, is_active=False)
        users = FakeUserRepository([retired], divisions)
        resolver = IdentityResolver(users, adapters)

        assert await resolver.resolve_or_create(AtsSystem.SYMPLR, 101, 'Pat Lee', NURSING) is None
        assert users.create_calls == []
        assert resolver.lookup(AtsSystem.SYMPLR, 101) is None

    async def test_primed_inactive_identity_is_not_queried(self, adapters, divisions) -> None:
        retired = make_user(1, 'Pat Lee', symplr_id=101, is_active=False)
        users = FakeUserRepository([retired], divisions)
        resolver = IdentityResolver(users, adapters)
        resolver.prime([retired])

        assert await resolver.resolve_or_create(AtsSystem.SYMPLR, 101) is None
        assert users.find_calls == []

    async def test_active_identity_wins_over_inactive_in_prime(self, adapters, divisions) -> None:
        retired = make_user(1, 'Pat Lee', symplr_id=101, is_active=False)
        current = make_user(2, 'Pat Lee', symplr_id=101)
        resolver = IdentityResolver(FakeUserRepository([retired, current], divisions), adapters)

        resolver.prime([current, retired])

        assert resolver.lookup(AtsSystem.SYMPLR, 101).config_id == 2


class TestDiscoveryFailures:

    async def test_failed_discovery_is_recorded_and_dropped(self, adapters, divisions) -> None:
        users = FakeUserRepository([], divisions)
        adapters[AtsSystem.SYMPLR].get_title = AsyncMock(side_effect=UpstreamUnavailableError("Symplr", "down"))
        resolver = IdentityResolver(users, adapters)

        identity = await resolver.resolve_or_create(AtsSystem.SYMPLR, 101, 'Alex Kim', NURSING)

        assert identity is None
        assert len(resolver.errors) == 1
        assert 'symplr user 101' in resolver.errors[0]

    async def test_concurrent_creation_uses_the_winner(self, adapters, divisions) -> None:
        winner = make_user(9, 'Alex Kim', symplr_id=101)
        users = FakeUserRepository([], divisions)
        resolver = IdentityResolver(users, adapters)

        # Another run inserts between our lookup and our insert
        original_find = users.find_by_ats_id

        async def find_then_race(ats_system, ats_local_id, active_only=False):
            result = await original_find(ats_system, ats_local_id, active_only)
            users.users[winner.config_id] = winner
            return result

        users.find_by_ats_id = find_then_race

        identity = await resolver.resolve_or_create(AtsSystem.SYMPLR, 101, 'Alex Kim', NURSING)

        assert identity.config_id == 9
        assert resolver.created == []
        assert resolver.errors == []


class TestDiscoveryDefaults:

    def test_stack_ranking_defaults(self) -> None:
        assert STACK_RANKING_DISCOVERY.on_stack_ranking is True
        assert STACK_RANKING_DISCOVERY.on_hours_report is False

    async def test_hours_defaults_skip_profile_lookup(self, adapters, divisions) -> None:
        resolver = IdentityResolver(
            FakeUserRepository([], divisions),
            adapters,
            defaults=hours_discovery_defaults(display_order=99),
            lookup_profile=False,
        )

        identity = await resolver.resolve_or_create(AtsSystem.SYMPLR, 101, 'Alex Kim', NURSING)

        assert identity.on_hours_report is True
        assert identity.on_stack_ranking is False
        assert identity.weekly_goal == 0.0
        assert identity.display_order == 99
        assert identity.role == RecruiterRole.UNKNOWN
        assert adapters[AtsSystem.SYMPLR].title_calls == []
