"""Asset list filtering shared by the list endpoint and exports."""

from ..models import Asset


def filter_assets(queryset=None, status=None, client_id=None):
    """Apply the asset list filters.

    Empty values are ignored so query-string parameters can be passed
    straight through.
    """
    if queryset is None:
        queryset = Asset.objects.all()
    if status:
        queryset = queryset.filter(current_status=status)
    if client_id:
        queryset = queryset.filter(client_id=client_id)
    return queryset.order_by("-created_at")
