"""
FastAPI router for admin operations on divisions and user configs.

Endpoints:
- GET    /divisions
- GET    /users
- GET    /users/{config_id}
- POST   /users
- PATCH  /users/{config_id}
- DELETE /users/{config_id}   (deactivates; identities are never deleted)
- POST   /discover            (add unseen specialists from recent Symplr orders)

IdentityNotFoundError maps to 404 and IdentityValidationError to 422.
"""

import logging
from typing import List

from fastapi import APIRouter, HTTPException, Query, status

from staffing_metrics.core.dependencies import HoursAggregatorDep, UserRepositoryDep
from staffing_metrics.core.errors import IdentityNotFoundError, IdentityValidationError
from staffing_metrics.models.schemas import (
    DiscoveryResult,
    Division,
    UserConfig,
    UserConfigCreate,
    UserConfigUpdate,
)


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/divisions", response_model=List[Division])
async def list_divisions(
    users: UserRepositoryDep,
    include_inactive: bool = Query(default=False),
) -> List[Division]:
    return await users.list_divisions(include_inactive)


@router.get("/users", response_model=List[UserConfig])
async def list_users(
    users: UserRepositoryDep,
    include_inactive: bool = Query(default=False),
) -> List[UserConfig]:
    return await users.list_users(include_inactive)


@router.get("/users/{config_id}", response_model=UserConfig)
async def get_user(config_id: int, users: UserRepositoryDep) -> UserConfig:
    try:
        return await users.get_user(config_id)
    except IdentityNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/users", response_model=UserConfig, status_code=status.HTTP_201_CREATED)
async def create_user(payload: UserConfigCreate, users: UserRepositoryDep) -> UserConfig:
    try:
        return await users.create_user(payload)
    except IdentityValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.patch("/users/{config_id}", response_model=UserConfig)
async def update_user(
    config_id: int,
    payload: UserConfigUpdate,
    users: UserRepositoryDep,
) -> UserConfig:
    try:
        return await users.update_user(config_id, payload)
    except IdentityNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except IdentityValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.delete("/users/{config_id}", response_model=UserConfig)
async def deactivate_user(config_id: int, users: UserRepositoryDep) -> UserConfig:
    try:
        return await users.deactivate_user(config_id)
    except IdentityNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/discover", response_model=DiscoveryResult)
async def discover_recruiters(aggregator: HoursAggregatorDep) -> DiscoveryResult:
    return await aggregator.discover_recruiters()
