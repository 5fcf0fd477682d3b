from rest_framework.pagination import PageNumberPagination


class StandardResultsSetPagination(PageNumberPagination):
    """Page-number pagination shared by every list endpoint.

    ``page_size`` falls back to ``REST_FRAMEWORK["PAGE_SIZE"]``; clients may
    override it with ``?page_size=`` up to ``max_page_size``.
    """

    page_size_query_param = "page_size"
    max_page_size = 100
