"""
Staffing Metrics Backend Package.

Weekly stack ranking and hours reporting for a staffing agency whose
placements live in two ATS mirrors (Symplr and Bullhorn).

Subpackages:
    - api: FastAPI route handlers for reports and admin operations
    - core: Configuration, database access, and error types
    - models: Pydantic schemas and enums
    - services: Identity resolution, aggregation, ranking, snapshots, hours
    - jobs: Entry points invoked by the scheduler
    - sql: Parameterized SQL queries
"""

__version__ = "1.0.0"
