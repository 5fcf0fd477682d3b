import django_filters

from modules.catalog.models import Book, Language


class BookFilter(django_filters.FilterSet):
    author = django_filters.CharFilter(field_name="author", lookup_expr="icontains")
    genre = django_filters.CharFilter(field_name="genre", lookup_expr="iexact")
    language = django_filters.ChoiceFilter(field_name="language", choices=Language.choices)
    min_price = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    max_price = django_filters.NumberFilter(field_name="price", lookup_expr="lte")

    class Meta:
        model = Book
        fields = ["author", "genre", "language", "min_price", "max_price"]
