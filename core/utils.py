"""
Core utilities — organization scoping, request parsing.
"""
from datetime import datetime

from rest_framework.exceptions import ValidationError

from core.errors import InvalidOperationError, NotFoundError
from core.models import Organization


def get_organization(organization_id):
    """Organization by id or NotFoundError."""
    try:
        return Organization.objects.get(pk=organization_id)
    except (Organization.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Organization {organization_id} not found")


def request_organization_id(request):
    """Caller's organization id; requests without one cannot touch finance data."""
    org_id = getattr(request.user, 'organization_id', None)
    if org_id is None:
        raise ValidationError({'detail': 'User is not assigned to an organization'})
    return org_id


def parse_date_param(value, name):
    """Parse YYYY-MM-DD (longer ISO strings are cut to the date part)."""
    if not value:
        raise ValidationError({name: f'{name} query param required (YYYY-MM-DD)'})
    try:
        return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
    except (ValueError, TypeError):
        raise ValidationError({name: 'Invalid date format'})


def check_period(period_start, period_end):
    if period_start is None or period_end is None:
        raise InvalidOperationError("Period start and end are required")
    if period_end < period_start:
        raise InvalidOperationError(
            f"Period end {period_end} is before period start {period_start}"
        )
