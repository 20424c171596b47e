"""
Repository for canonical identities (user_config) and divisions.

Invariants enforced here:
- At most one active identity per (ats_system, ats_local_id).
- canonical_user_id = coalesce(symplr_id, bullhorn_id, previous value),
  recomputed whenever either ATS id changes.
- Identities are deactivated, never deleted.

Key Functions:
- compute_canonical_user_id: the coalesce rule
- UserConfigRepository: CRUD over user_config plus division reads
"""

import logging
from typing import List, Optional

from staffing_metrics.core.database import Database
from staffing_metrics.core.errors import IdentityNotFoundError, IdentityValidationError
from staffing_metrics.models.enums import AtsSystem
from staffing_metrics.models.schemas import (
    Division,
    DivisionAtsMapping,
    UserConfig,
    UserConfigCreate,
    UserConfigUpdate,
)
from staffing_metrics.sql.identity_queries import (
    get_active_ats_id_conflict_query,
    get_deactivate_user_config_query,
    get_division_ats_mappings_query,
    get_division_by_name_query,
    get_divisions_query,
    get_insert_user_config_query,
    get_update_user_config_query,
    get_user_config_by_ats_id_query,
    get_user_config_query,
    get_user_configs_query,
)


logger = logging.getLogger(__name__)


def compute_canonical_user_id(
    symplr_id: Optional[int],
    bullhorn_id: Optional[int],
    previous: Optional[int] = None,
) -> Optional[int]:
    """
    First non-null of symplr_id, bullhorn_id and the previous value.

    Example:
        >>> compute_canonical_user_id(None, 77, previous=12)
        77
        >>> compute_canonical_user_id(None, None, previous=12)
        12
    """
    for candidate in (symplr_id, bullhorn_id, previous):
        if candidate is not None:
            return candidate
    return None


def _to_user_config(row) -> UserConfig:
    return UserConfig.model_validate(dict(row))


class UserConfigRepository:
    """
    Identity and division persistence on the report store.

    Args:
        db: Report store database.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    # =========================================================================
    # Divisions
    # =========================================================================

    async def list_divisions(self, include_inactive: bool = False) -> List[Division]:
        rows = await self.db.fetch(get_divisions_query(include_inactive))
        return [Division.model_validate(dict(row)) for row in rows]

    async def get_division_ats_mappings(self) -> List[DivisionAtsMapping]:
        rows = await self.db.fetch(get_division_ats_mappings_query())
        return [DivisionAtsMapping.model_validate(dict(row)) for row in rows]

    async def find_division_by_name(self, name: str) -> Optional[int]:
        if not name or not name.strip():
            return None
        row = await self.db.fetchrow(get_division_by_name_query(), name.strip())
        return row['division_id'] if row else None

    # =========================================================================
    # User Configs
    # =========================================================================

    async def list_users(self, include_inactive: bool = False) -> List[UserConfig]:
        rows = await self.db.fetch(get_user_configs_query(include_inactive))
        return [_to_user_config(row) for row in rows]

    async def get_user(self, config_id: int) -> UserConfig:
        row = await self.db.fetchrow(get_user_config_query(), config_id)
        if row is None:
            raise IdentityNotFoundError(config_id)
        return _to_user_config(row)

    async def find_by_ats_id(
        self,
        ats_system: AtsSystem,
        ats_local_id: int,
        active_only: bool = False,
    ) -> Optional[UserConfig]:
        """
        Identity holding this ATS id, preferring an active one.

        With active_only=False a deactivated identity is returned too, so
        callers can tell "deactivated" apart from "never seen".
        """
        row = await self.db.fetchrow(
            get_user_config_by_ats_id_query(ats_system, active_only),
            ats_local_id,
        )
        return _to_user_config(row) if row else None

    async def _check_ats_ids_free(
        self,
        symplr_id: Optional[int],
        bullhorn_id: Optional[int],
        exclude_config_id: Optional[int] = None,
    ) -> None:
        for ats_system, ats_local_id in (
            (AtsSystem.SYMPLR, symplr_id),
            (AtsSystem.BULLHORN, bullhorn_id),
        ):
            if ats_local_id is None:
                continue
            row = await self.db.fetchrow(
                get_active_ats_id_conflict_query(ats_system),
                ats_local_id,
                exclude_config_id,
            )
            if row is not None:
                raise IdentityValidationError(
                    f"{ats_system.value} id {ats_local_id} already belongs to "
                    f"active user config {row['config_id']}"
                )

    async def create_user(self, payload: UserConfigCreate) -> UserConfig:
        """
        Insert a new active identity.

        Raises:
            IdentityValidationError: If an active identity already holds one
                of the ATS ids.
        """
        await self._check_ats_ids_free(payload.symplr_id, payload.bullhorn_id)

        row = await self.db.fetchrow(
            get_insert_user_config_query(),
            compute_canonical_user_id(payload.symplr_id, payload.bullhorn_id),
            payload.name,
            payload.division_id,
            payload.role.value,
            payload.title,
            payload.ats_source.value if payload.ats_source else None,
            payload.symplr_id,
            payload.bullhorn_id,
            payload.weekly_goal,
            payload.on_hours_report,
            payload.on_stack_ranking,
            payload.display_order,
        )
        user = _to_user_config(row)
        logger.info(f"Created user config {user.config_id} ({user.name})")
        return user

    async def update_user(self, config_id: int, payload: UserConfigUpdate) -> UserConfig:
        """
        Apply a partial update.

        canonical_user_id is recomputed when symplr_id or bullhorn_id
        changes. Reactivating an identity is checked against the active-id
        invariant like any other change.

        Raises:
            IdentityNotFoundError: If config_id does not exist.
            IdentityValidationError: If the update would give two active
                identities the same ATS id, or leave no ATS id at all.
        """
        current = await self.get_user(config_id)
        changes = payload.model_dump(exclude_unset=True)
        merged = current.model_copy(update=changes)

        if merged.symplr_id is None and merged.bullhorn_id is None:
            raise IdentityValidationError("A user config needs a symplr_id or a bullhorn_id")

        ids_changed = (
            merged.symplr_id != current.symplr_id
            or merged.bullhorn_id != current.bullhorn_id
        )
        if ids_changed:
            merged.canonical_user_id = compute_canonical_user_id(
                merged.symplr_id, merged.bullhorn_id, current.canonical_user_id
            )

        if merged.is_active and (ids_changed or not current.is_active):
            await self._check_ats_ids_free(merged.symplr_id, merged.bullhorn_id, config_id)

        row = await self.db.fetchrow(
            get_update_user_config_query(),
            config_id,
            merged.canonical_user_id,
            merged.name,
            merged.division_id,
            merged.role.value,
            merged.title,
            merged.symplr_id,
            merged.bullhorn_id,
            merged.weekly_goal,
            merged.on_hours_report,
            merged.on_stack_ranking,
            merged.is_active,
            merged.display_order,
        )
        if row is None:
            raise IdentityNotFoundError(config_id)
        return _to_user_config(row)

    async def deactivate_user(self, config_id: int) -> UserConfig:
        row = await self.db.fetchrow(get_deactivate_user_config_query(), config_id)
        if row is None:
            raise IdentityNotFoundError(config_id)
        logger.info(f"Deactivated user config {config_id}")
        return _to_user_config(row)
