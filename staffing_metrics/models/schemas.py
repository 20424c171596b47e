"""
Pydantic models for the Staffing Metrics backend.

Groups:
- Identity: UserConfig (the canonical recruiter identity), create/update
  payloads, Division and the division-to-ATS mapping
- ATS rows: per-ATS DTOs validated straight from mirror query rows, and the
  ATS-tagged PlacementFact / ShiftFact they become
- Reports: ranked rows, financial rows and their totals
- Snapshots: persisted weekly ranking and hours rows
- Runs: results of the hours pipeline and the pivoted hours report

All models use Pydantic v2 syntax.
"""

from datetime import date as DateType, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from staffing_metrics.models.enums import (
    AtsSystem,
    BullhornPlacementStatus,
    RecruiterRole,
    WeekPeriod,
)


# =============================================================================
# Identity Models
# =============================================================================


class UserConfig(BaseModel):
    """
    Canonical recruiter / account manager identity.

    One record merges the user's Symplr and Bullhorn ids. canonical_user_id
    is the business id used by snapshots: the first non-null of symplr_id,
    bullhorn_id, or its previous value. Records are never deleted, only
    deactivated.
    """
    model_config = ConfigDict(from_attributes=True)

    config_id: int = Field(..., description="Surrogate key, never reused")
    canonical_user_id: Optional[int] = Field(
        default=None,
        description="Business id: coalesce(symplr_id, bullhorn_id, previous)"
    )
    name: str = Field(..., description="Display name")
    division_id: int = Field(..., description="Owning division")
    role: RecruiterRole = Field(default=RecruiterRole.UNKNOWN)
    title: Optional[str] = Field(default=None, description="ATS job title")
    ats_source: Optional[AtsSystem] = Field(
        default=None,
        description="ATS that first discovered this user"
    )
    symplr_id: Optional[int] = None
    bullhorn_id: Optional[int] = None
    weekly_goal: float = Field(default=0.0, ge=0.0, description="Weekly hours goal")
    on_hours_report: bool = False
    on_stack_ranking: bool = True
    is_active: bool = True
    display_order: int = 0

    def ats_id(self, ats_system: AtsSystem) -> Optional[int]:
        if ats_system == AtsSystem.SYMPLR:
            return self.symplr_id
        return self.bullhorn_id


class UserConfigCreate(BaseModel):
    """Payload for creating a user config by admin action or discovery."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    division_id: int
    role: RecruiterRole = RecruiterRole.UNKNOWN
    title: Optional[str] = None
    ats_source: Optional[AtsSystem] = None
    symplr_id: Optional[int] = None
    bullhorn_id: Optional[int] = None
    weekly_goal: float = Field(default=0.0, ge=0.0)
    on_hours_report: bool = False
    on_stack_ranking: bool = True
    display_order: int = 0

    @model_validator(mode='after')
    def _require_ats_id(self) -> 'UserConfigCreate':
        if self.symplr_id is None and self.bullhorn_id is None:
            raise ValueError("A user config needs a symplr_id or a bullhorn_id")
        return self


NULLABLE_UPDATE_FIELDS = frozenset({'title', 'symplr_id', 'bullhorn_id'})


class UserConfigUpdate(BaseModel):
    """
    Partial update; only fields present in the payload are applied.

    Explicit null is accepted for title, symplr_id and bullhorn_id only.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1)
    division_id: Optional[int] = None
    role: Optional[RecruiterRole] = None
    title: Optional[str] = None
    symplr_id: Optional[int] = None
    bullhorn_id: Optional[int] = None
    weekly_goal: Optional[float] = Field(default=None, ge=0.0)
    on_hours_report: Optional[bool] = None
    on_stack_ranking: Optional[bool] = None
    is_active: Optional[bool] = None
    display_order: Optional[int] = None

    @model_validator(mode='after')
    def _reject_null_required(self) -> 'UserConfigUpdate':
        # Only title and the ATS ids may be cleared
        nulled = sorted(
            field for field in self.model_fields_set - NULLABLE_UPDATE_FIELDS
            if getattr(self, field) is None
        )
        if nulled:
            raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return self


class Division(BaseModel):
    """Report grouping of recruiters."""
    division_id: int
    division_name: str
    display_order: int = 0
    is_active: bool = True


class DivisionAtsMapping(BaseModel):
    """Routes a division to its ATS system of record."""
    division_id: int
    ats_system: AtsSystem


# =============================================================================
# ATS Row DTOs
# =============================================================================


class SymplrPlacementRecord(BaseModel):
    """
    One recruiter's filled orders for a week in the Symplr mirror.

    Bill and pay totals already include every pay-rate tier.
    """
    recruiter_user_id: int
    recruiter_name: Optional[str] = None
    division_id: int
    head_count: int = Field(default=0, ge=0)
    total_bill_amount: float = 0.0
    total_pay_amount: float = 0.0


class BullhornPlacementRecord(BaseModel):
    """One active Bullhorn placement whose dates intersect the week."""
    placement_id: int
    recruiter_user_id: int
    recruiter_name: Optional[str] = None
    division_id: int
    status: BullhornPlacementStatus
    date_begin: DateType
    date_end: Optional[DateType] = None
    bill_rate: float = Field(default=0.0, ge=0.0)
    pay_rate: float = Field(default=0.0, ge=0.0)
    hours_per_day: Optional[float] = None


class PlacementFact(BaseModel):
    """
    Per-recruiter financial facts for one week, in ATS-local identity space.

    Never persisted; lives for one computation.
    """
    model_config = ConfigDict(frozen=True)

    ats_system: AtsSystem
    ats_local_id: int
    name: Optional[str] = None
    division_id: int
    head_count: int = 0
    total_bill_amount: float = 0.0
    total_pay_amount: float = 0.0


class ShiftFact(BaseModel):
    """
    One filled Symplr order (shift) for the hours report.

    lunch_minutes comes from the client profile default, because the
    per-order lunch field is only filled in after payment.
    """
    model_config = ConfigDict(frozen=True)

    order_id: int
    ats_local_id: int = Field(..., description="Staffing specialist user id")
    specialist_name: Optional[str] = None
    division_id: Optional[int] = None
    shift_start: datetime
    shift_end: datetime
    lunch_minutes: int = 0


# =============================================================================
# Report Models
# =============================================================================


class RankedRow(BaseModel):
    """One canonical recruiter's row in a week's stack ranking."""
    canonical_user_id: int
    name: str
    division_name: str
    head_count: int
    gross_margin_dollars: float
    gross_profit_pct: float
    revenue: float
    rank: int = Field(..., ge=1)
    prior_week_rank: Optional[int] = None
    rank_change: Optional[int] = Field(
        default=None,
        description="prior_week_rank - rank; positive means the user moved up"
    )


class RankingTotals(BaseModel):
    total_head_count: int = 0
    total_gm_dollars: float = 0.0
    total_revenue: float = 0.0
    overall_gp_pct: float = 0.0


class StackRankingReport(BaseModel):
    """Output of calculate_ranking."""
    week_start: DateType
    week_end: DateType
    rows: List[RankedRow] = Field(default_factory=list)
    totals: RankingTotals = Field(default_factory=RankingTotals)
    errors: List[str] = Field(default_factory=list)
    reason: Optional[str] = Field(
        default=None,
        description="Why the run short-circuited, when it did"
    )
    snapshot_saved: bool = False
    new_users: List[str] = Field(default_factory=list)


class FinancialRow(BaseModel):
    """Bill/pay/GP for one canonical user, without ranking."""
    canonical_user_id: int
    name: str
    division_name: str
    head_count: int
    total_bill: float
    total_pay: float
    gross_profit_dollars: float
    gross_margin_pct: float


class FinancialTotals(BaseModel):
    total_head_count: int = 0
    total_bill: float = 0.0
    total_pay: float = 0.0
    total_gp_dollars: float = 0.0
    overall_gm_pct: float = 0.0


class FinancialReport(BaseModel):
    """Output of get_financials."""
    week_start: DateType
    week_end: DateType
    rows: List[FinancialRow] = Field(default_factory=list)
    totals: FinancialTotals = Field(default_factory=FinancialTotals)
    errors: List[str] = Field(default_factory=list)
    new_users: List[str] = Field(default_factory=list)
    reason: Optional[str] = None


# =============================================================================
# Snapshot Models
# =============================================================================


class WeeklyRankingSnapshot(BaseModel):
    """Persisted ranked row, one per (week_start, canonical_user_id)."""
    model_config = ConfigDict(from_attributes=True)

    week_start: DateType
    canonical_user_id: int
    name: str
    division_name: str
    head_count: int
    gross_margin_dollars: float
    gross_profit_pct: float
    revenue: float
    rank: int


class WeeklyHoursSnapshot(BaseModel):
    """Hours for one (canonical_user_id, week_start, day_bucket)."""
    canonical_user_id: int
    week_start: DateType
    day_bucket: int = Field(..., ge=0, le=5)
    total_hours: float


# =============================================================================
# Hours Models
# =============================================================================


class HoursRunResult(BaseModel):
    """Output of calculate_all_hours."""
    processed: int = Field(default=0, description="Dates processed without error")
    errors: List[str] = Field(default_factory=list)
    new_recruiters: List[str] = Field(default_factory=list)
    reason: Optional[str] = None
    rollover: bool = False


class DiscoveryResult(BaseModel):
    """Output of discover_recruiters."""
    date_start: DateType
    date_end: DateType
    discovered: int = Field(default=0, description="Distinct specialists seen on orders")
    added: List[str] = Field(default_factory=list, description="Names of identities created")
    skipped: int = Field(default=0, description="Specialists already known or not added")
    errors: List[str] = Field(default_factory=list)
    reason: Optional[str] = None


class HoursReportRow(BaseModel):
    """One recruiter's hours for one week period, pivoted by day bucket."""
    canonical_user_id: int
    name: str
    division_id: int
    division_name: str
    weekly_goal: float
    week_period: WeekPeriod
    sun_mon: float = 0.0
    tue: float = 0.0
    wed: float = 0.0
    thu: float = 0.0
    fri: float = 0.0
    sat: float = 0.0
    weekly_total: float = 0.0


class HoursPeriodTotals(BaseModel):
    week_period: WeekPeriod
    sun_mon: float = 0.0
    tue: float = 0.0
    wed: float = 0.0
    thu: float = 0.0
    fri: float = 0.0
    sat: float = 0.0
    total: float = 0.0
    goal: float = 0.0


class HoursReport(BaseModel):
    this_week_start: DateType
    rows: List[HoursReportRow] = Field(default_factory=list)
    totals: Dict[WeekPeriod, HoursPeriodTotals] = Field(default_factory=dict)
