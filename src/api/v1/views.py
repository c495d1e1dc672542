"""ViewSets for shared reference data exposed by API v1."""
from rest_framework import viewsets
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated

from api.v1.serializers import StoreSerializer
from stores.models import Store
from stores.services import parse_uuid_list


class StoreViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Store reference data.

    ``?ids=<uuid>,<uuid>`` restricts the result to the given stores.
    """

    serializer_class = StoreSerializer
    permission_classes = [IsAuthenticated]
    queryset = Store.objects.all()
    filterset_fields = ["is_active", "region"]
    search_fields = ["name", "number"]
    ordering_fields = ["number", "name"]

    def get_queryset(self):
        qs = super().get_queryset()
        try:
            ids = parse_uuid_list(self.request.query_params.getlist("ids"))
        except ValueError as exc:
            raise ValidationError({"ids": str(exc)})
        if ids:
            qs = qs.filter(pk__in=ids)
        return qs.order_by("number")
