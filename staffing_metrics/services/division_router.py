"""
Division Router: which ATS is the system of record for each division.

A recruiter's facts reported under a division that is not mapped to the ATS
that produced them are dropped, so a user present in both mirrors is never
counted twice.
"""

from typing import Dict, FrozenSet, Iterable, List, Optional

from staffing_metrics.core.errors import ConfigurationMissingError
from staffing_metrics.models.enums import AtsSystem
from staffing_metrics.models.schemas import DivisionAtsMapping, PlacementFact, ShiftFact


class DivisionRouter:
    """
    Disjoint division-id sets, one per ATS system.

    A division mapped to both systems is a configuration error; the first
    mapping wins and later duplicates are ignored.
    """

    def __init__(self, mappings: Iterable[DivisionAtsMapping]) -> None:
        self._ats_by_division: Dict[int, AtsSystem] = {}
        for mapping in mappings:
            self._ats_by_division.setdefault(mapping.division_id, mapping.ats_system)

        self._divisions: Dict[AtsSystem, FrozenSet[int]] = {
            ats: frozenset(
                division_id
                for division_id, mapped in self._ats_by_division.items()
                if mapped == ats
            )
            for ats in AtsSystem
        }

    @property
    def symplr_divisions(self) -> FrozenSet[int]:
        return self._divisions[AtsSystem.SYMPLR]

    @property
    def bullhorn_divisions(self) -> FrozenSet[int]:
        return self._divisions[AtsSystem.BULLHORN]

    @property
    def is_empty(self) -> bool:
        return not self._ats_by_division

    def divisions_for(self, ats_system: AtsSystem) -> FrozenSet[int]:
        return self._divisions[ats_system]

    def has_divisions(self, ats_system: AtsSystem) -> bool:
        """True when the adapter for this ATS needs to run at all."""
        return bool(self._divisions[ats_system])

    def ats_for_division(self, division_id: Optional[int]) -> Optional[AtsSystem]:
        if division_id is None:
            return None
        return self._ats_by_division.get(division_id)

    def is_authoritative(self, ats_system: AtsSystem, division_id: Optional[int]) -> bool:
        return division_id is not None and division_id in self._divisions[ats_system]

    def filter_placements(self, facts: Iterable[PlacementFact]) -> List[PlacementFact]:
        """Keep facts whose division is mapped to the ATS that produced them."""
        return [
            fact for fact in facts
            if self.is_authoritative(fact.ats_system, fact.division_id)
        ]

    def filter_shifts(self, shifts: Iterable[ShiftFact]) -> List[ShiftFact]:
        """Shifts come from Symplr only."""
        return [
            shift for shift in shifts
            if self.is_authoritative(AtsSystem.SYMPLR, shift.division_id)
        ]


NO_MAPPINGS_REASON = "No division ATS mappings configured"


async def load_division_router(users, require: Optional[AtsSystem] = None) -> DivisionRouter:
    """
    Build the router from the stored mappings.

    Raises:
        ConfigurationMissingError: If no division is mapped at all, or none
            is mapped to the required ATS.
    """
    router = DivisionRouter(await users.get_division_ats_mappings())
    if router.is_empty:
        raise ConfigurationMissingError(NO_MAPPINGS_REASON)
    if require is not None and not router.has_divisions(require):
        raise ConfigurationMissingError(f"No divisions mapped to {require.value.capitalize()}")
    return router
