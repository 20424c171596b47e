"""
Error types shared by the services and the API layer.

- UpstreamUnavailableError: an ATS mirror or the report store failed; fatal
  for the unit of work in progress, recorded, siblings continue.
- ConfigurationMissingError: the run cannot start (no division mappings, no
  identities); carries the reason string reported to the caller.
- IdentityNotFoundError / IdentityValidationError: bad input to an admin
  mutation; the API maps them to 404 / 422.

An ATS id that resolves to no active identity is not an error: the fact is
dropped from aggregation.
"""


class StaffingMetricsError(Exception):
    """Base class for errors raised by this package."""


class UpstreamUnavailableError(StaffingMetricsError):
    """An ATS mirror or the report store could not be queried."""

    def __init__(self, source: str, detail: str) -> None:
        self.source = source
        self.detail = detail
        super().__init__(f"{source} unavailable: {detail}")


class ConfigurationMissingError(StaffingMetricsError):
    """Required configuration rows are missing."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class IdentityNotFoundError(StaffingMetricsError):
    def __init__(self, config_id: int) -> None:
        self.config_id = config_id
        super().__init__(f"User config {config_id} not found")


class IdentityValidationError(StaffingMetricsError):
    """An admin mutation would violate an identity invariant."""
