"""
Analytics exceptions.

Everything that can reach the HTTP layer derives from
CleanCityAPIException and is rendered by the shared exception handler.
MalformedReport never leaves the window filter.
"""

from rest_framework import status

from core.exceptions import CleanCityAPIException


class InvalidRangeError(CleanCityAPIException):
    """Missing, unparseable or inverted date range."""
    default_code = 'INVALID_DATE_RANGE'
    default_message = 'startDate and endDate must be valid dates with startDate <= endDate.'
    default_status_code = status.HTTP_400_BAD_REQUEST


class DataSourceUnavailable(CleanCityAPIException):
    """The report store could not be read."""
    default_code = 'DATA_SOURCE_UNAVAILABLE'
    default_message = 'Report data is temporarily unavailable. Please try again later.'
    default_status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True


class ComputationTimeout(CleanCityAPIException):
    """Aggregation exceeded its deadline or was cancelled."""
    default_code = 'COMPUTATION_TIMEOUT'
    default_message = 'The analytics query took too long. Please narrow the date range or retry.'
    default_status_code = status.HTTP_504_GATEWAY_TIMEOUT
    retryable = True


class DriverNotFound(CleanCityAPIException):
    default_code = 'DRIVER_NOT_FOUND'
    default_message = 'No metrics found for the requested driver in this period.'
    default_status_code = status.HTTP_404_NOT_FOUND


class MalformedReport(Exception):
    """A report violates a history invariant and is excluded from analysis."""

    def __init__(self, reason, report_id=None):
        self.reason = reason
        self.report_id = report_id
        super().__init__(f"{reason} (report={report_id})")
