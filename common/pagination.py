from rest_framework.pagination import PageNumberPagination, LimitOffsetPagination
from rest_framework.response import Response


class StandardResultsSetPagination(PageNumberPagination):
    page_size = 25
    page_size_query_param = "page_size"
    max_page_size = 200

    def get_paginated_response(self, data):
        return Response({
            "meta": {
                "count": self.page.paginator.count,
                "page_size": self.get_page_size(self.request),
                "current": self.page.number,
                "total_pages": self.page.paginator.num_pages,
            },
            "results": data
        })


class FeedPagination(LimitOffsetPagination):
    """Newest-first feeds: `?limit=` picks how many events the dashboard shows."""
    default_limit = 10
    max_limit = 100

    def get_paginated_response(self, data):
        return Response({
            "meta": {
                "count": self.count,
                "limit": self.limit,
                "offset": self.offset,
            },
            "results": data
        })
