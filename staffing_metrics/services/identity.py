"""
Identity Resolver: maps ATS-local recruiter ids to canonical identities.

resolve_or_create() looks up the identity holding an ATS id and, when none
exists, discovers the person from that ATS:

1. fetch the job title from the ATS user source
2. classify the role by keyword (infer_role)
3. Bullhorn only: match the user's department name against active
   division names, case-insensitive exact match
4. create the identity with the run's discovery defaults

A deactivated identity is a dead letter: its facts are dropped and it is
never rediscovered. Keys already checked during the run are not queried
again, so a user seen on many facts is created at most once per run.
Across concurrent runs the active-id check in the repository is the guard.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from staffing_metrics.core.errors import IdentityValidationError
from staffing_metrics.models.enums import AtsSystem, RecruiterRole
from staffing_metrics.models.schemas import PlacementFact, UserConfig, UserConfigCreate
from staffing_metrics.services.user_config import UserConfigRepository


logger = logging.getLogger(__name__)


RECRUITER_KEYWORDS = (
    "recruiter",
    "staffing specialist",
    "talent acquisition",
    "sourcer",
)

ACCOUNT_MANAGER_KEYWORDS = (
    "account manager",
    "account executive",
    "sales",
    "business development",
    "client manager",
)


def infer_role(title: Optional[str]) -> RecruiterRole:
    """
    Classify a job title by case-insensitive substring match.

    Recruiter keywords are checked first.

    Example:
        >>> infer_role("Senior Talent Acquisition Partner")
        <RecruiterRole.RECRUITER: 'recruiter'>
        >>> infer_role("VP, Business Development")
        <RecruiterRole.ACCOUNT_MANAGER: 'account_manager'>
        >>> infer_role(None)
        <RecruiterRole.UNKNOWN: 'unknown'>
    """
    if not title:
        return RecruiterRole.UNKNOWN
    lowered = title.lower()
    if any(keyword in lowered for keyword in RECRUITER_KEYWORDS):
        return RecruiterRole.RECRUITER
    if any(keyword in lowered for keyword in ACCOUNT_MANAGER_KEYWORDS):
        return RecruiterRole.ACCOUNT_MANAGER
    return RecruiterRole.UNKNOWN


@dataclass(frozen=True)
class DiscoveryDefaults:
    """
    Flags given to identities created by discovery.

    The stack ranking creates users on the ranking only; the hours pipeline
    creates users on the hours report with no weekly goal.
    """
    on_stack_ranking: bool = True
    on_hours_report: bool = False
    weekly_goal: float = 0.0
    display_order: int = 0


STACK_RANKING_DISCOVERY = DiscoveryDefaults()


def hours_discovery_defaults(display_order: int = 99) -> DiscoveryDefaults:
    return DiscoveryDefaults(
        on_stack_ranking=False,
        on_hours_report=True,
        weekly_goal=0.0,
        display_order=display_order,
    )


IdentityKey = Tuple[AtsSystem, int]


class IdentityResolver:
    """
    Per-run identity resolution with discovery.

    One resolver lives for one computation run. After resolution, lookup()
    answers from memory without touching the store or discovering.

    Args:
        users: Identity repository.
        adapters: ATS adapters keyed by system. Each has get_title(); the
            Bullhorn adapter also has get_department().
        defaults: Flags for discovered identities.
        default_division_id: Division used when nothing better is known.
        lookup_profile: Fetch title/department during discovery. The hours
            pipeline may skip it.
    """

    def __init__(
        self,
        users: UserConfigRepository,
        adapters: Mapping[AtsSystem, Any],
        defaults: DiscoveryDefaults = STACK_RANKING_DISCOVERY,
        default_division_id: int = 1,
        lookup_profile: bool = True,
    ) -> None:
        self.users = users
        self.adapters = adapters
        self.defaults = defaults
        self.default_division_id = default_division_id
        self.lookup_profile = lookup_profile

        self._checked: Set[IdentityKey] = set()
        self._resolved: Dict[IdentityKey, UserConfig] = {}
        self.created: List[UserConfig] = []
        self.errors: List[str] = []

    def prime(self, identities: Iterable[UserConfig]) -> None:
        """
        Seed the run with identities already loaded from the store.

        Active identities win over inactive ones holding the same id.
        """
        for identity in identities:
            for ats_system in AtsSystem:
                ats_local_id = identity.ats_id(ats_system)
                if ats_local_id is None:
                    continue
                key = (ats_system, ats_local_id)
                if identity.is_active:
                    self._resolved[key] = identity
                self._checked.add(key)

    def lookup(self, ats_system: AtsSystem, ats_local_id: int) -> Optional[UserConfig]:
        """Already-resolved active identity; never queries or discovers."""
        return self._resolved.get((ats_system, ats_local_id))

    async def resolve_all(self, facts: Iterable[PlacementFact]) -> None:
        """Resolve facts one at a time so discovery never runs twice for a key."""
        for fact in facts:
            await self.resolve_or_create(
                fact.ats_system, fact.ats_local_id, fact.name, fact.division_id
            )

    async def resolve_or_create(
        self,
        ats_system: AtsSystem,
        ats_local_id: int,
        observed_name: Optional[str] = None,
        observed_division_id: Optional[int] = None,
    ) -> Optional[UserConfig]:
        """
        Active identity for an ATS id, discovering it on first sight.

        Returns:
            The active identity, or None when the id belongs to a
            deactivated identity or discovery failed.
        """
        key = (ats_system, ats_local_id)
        if key in self._checked:
            return self._resolved.get(key)

        existing = await self.users.find_by_ats_id(ats_system, ats_local_id)
        if existing is not None:
            self._checked.add(key)
            if existing.is_active:
                self._resolved[key] = existing
                return existing
            logger.debug(f"{ats_system.value} user {ats_local_id} is deactivated; dropping")
            return None

        identity = await self._discover(ats_system, ats_local_id, observed_name, observed_division_id)
        self._checked.add(key)
        if identity is not None:
            self._resolved[key] = identity
        return identity

    async def _discover(
        self,
        ats_system: AtsSystem,
        ats_local_id: int,
        observed_name: Optional[str],
        observed_division_id: Optional[int],
    ) -> Optional[UserConfig]:
        try:
            title = None
            division_id = observed_division_id or self.default_division_id

            if self.lookup_profile:
                adapter = self.adapters[ats_system]
                title = await adapter.get_title(ats_local_id)

                if ats_system == AtsSystem.BULLHORN:
                    department = await adapter.get_department(ats_local_id)
                    if department:
                        matched = await self.users.find_division_by_name(department)
                        if matched is not None:
                            division_id = matched

            role = infer_role(title)
            payload = UserConfigCreate(
                name=(observed_name or "").strip() or f"User {ats_local_id}",
                division_id=division_id,
                role=role,
                title=title,
                ats_source=ats_system,
                symplr_id=ats_local_id if ats_system == AtsSystem.SYMPLR else None,
                bullhorn_id=ats_local_id if ats_system == AtsSystem.BULLHORN else None,
                weekly_goal=self.defaults.weekly_goal,
                on_hours_report=self.defaults.on_hours_report,
                on_stack_ranking=self.defaults.on_stack_ranking,
                display_order=self.defaults.display_order,
            )

            try:
                identity = await self.users.create_user(payload)
            except IdentityValidationError:
                # Another run created it between our lookup and insert
                identity = await self.users.find_by_ats_id(ats_system, ats_local_id, active_only=True)
                if identity is None:
                    raise
                return identity

        except Exception as e:
            logger.exception(f"Error auto-adding {ats_system.value} user {ats_local_id}")
            self.errors.append(f"Discovery failed for {ats_system.value} user {ats_local_id}: {e}")
            return None

        self.created.append(identity)
        logger.info(
            f"Auto-added {ats_system.value} user {identity.name} "
            f"(ID: {ats_local_id}, title: {title}, role: {role.value}, division: {division_id})"
        )
        return identity
