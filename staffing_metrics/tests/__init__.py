'''
Staffing Metrics Test Suite

Test Modules:
-------------
- test_ats_adapters.py: Symplr/Bullhorn adapters and weekday arithmetic
  - Closed-form weekday count against numpy's business-day count
  - Week clamping of open-ended and out-of-week placements
  - Bullhorn bill/pay per placement, grouping per recruiter

- test_identity.py: Identity Resolver
  - Role inference from ATS titles
  - Discovery happens at most once per ATS id per run
  - Deactivated identities are dead letters
  - Bullhorn department-to-division matching

- test_user_config.py: identity repository invariants
  - canonical_user_id coalesce and recompute
  - One active identity per ATS id

- test_ranking.py: stack ranking and financials
  - GM$/GP% metrics, dense ranks and tie-break
  - Rank change against the prior week's snapshot
  - Snapshot replace and upstream failure handling

- test_snapshots.py: ranking and hours snapshot stores
- test_hours.py: Hours Aggregator over the rolling three-week window
- test_hours_report.py: pandas pivot of hours snapshots
- test_api.py: FastAPI endpoints with dependency overrides
- test_jobs.py: scheduled job entry points

Running Tests:
--------------
    pytest staffing_metrics/tests/ -v
'''
