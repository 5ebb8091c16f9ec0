import django_filters
from django.db.models import Q

from modules.products.models import Product


class ProductFilter(django_filters.FilterSet):
    category_id = django_filters.UUIDFilter(field_name="category_id")
    search = django_filters.CharFilter(method="filter_search")
    min_price = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    max_price = django_filters.NumberFilter(field_name="price", lookup_expr="lte")
    is_active = django_filters.BooleanFilter(field_name="is_active")
    in_stock = django_filters.BooleanFilter(field_name="in_stock")

    class Meta:
        model = Product
        fields = [
            "category_id",
            "search",
            "min_price",
            "max_price",
            "is_active",
            "in_stock",
        ]

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(name__icontains=value)
            | Q(description__icontains=value)
            | Q(sku__icontains=value)
        )


PRODUCT_FILTER_PARAMS = ("category_id", "search", "min_price", "max_price", "is_active")

PUBLIC_SORTS = {
    "name": ("name",),
    "price": ("price",),
    "price_desc": ("-price",),
    "created_at": ("-created_at",),
}
