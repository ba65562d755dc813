"""
Data Source Exceptions

Raised by record sources behind the route handlers. Mapped to a generic 500
by the application's exception handler; such responses are never cached.

Author: Platform Team
Date: 2026-02-11
"""

from housing_dashboard.core.exceptions.base import DashboardError


class RecordSourceError(DashboardError):
    """The downstream query collaborator failed."""
    pass


class UnknownResourceError(RecordSourceError):
    """A route asked for a resource the record source does not serve."""
    pass
