import django_filters
from django.db.models import Q

from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method="filter_search")
    status = django_filters.CharFilter(method="filter_status")
    date_from = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    date_to = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")
    min_amount = django_filters.NumberFilter(
        field_name="total_amount", lookup_expr="gte"
    )
    max_amount = django_filters.NumberFilter(
        field_name="total_amount", lookup_expr="lte"
    )

    class Meta:
        model = Order
        fields = [
            "search",
            "status",
            "date_from",
            "date_to",
            "min_amount",
            "max_amount",
        ]

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(order_number__icontains=value)
            | Q(billing_address__name__icontains=value)
            | Q(billing_address__email__icontains=value)
            | Q(notes__icontains=value)
        )

    def filter_status(self, queryset, name, value):
        # "all" is the storefront admin's explicit no-op
        if value.lower() == "all":
            return queryset
        return queryset.filter(status=value.lower())


ORDER_SORT_FIELDS = ("created_at", "order_number", "status", "total_amount", "updated_at")
