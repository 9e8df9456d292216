"""
Common utility functions for API responses
"""
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework import status


def success_response(data=None, message="Success", status_code=status.HTTP_200_OK):
    """
    Standard success response envelope: {code, msg, data}
    """
    response_data = {
        "code": status_code,
        "msg": message,
        "data": data
    }
    return Response(response_data, status=status_code)


def error_response(message="Error", errors=None, status_code=status.HTTP_400_BAD_REQUEST):
    """
    Standard error response envelope: {code, msg[, errors]}
    """
    response_data = {
        "code": status_code,
        "msg": message
    }
    if errors:
        response_data["errors"] = errors
    return Response(response_data, status=status_code)


def paginated_response(queryset, serializer_class, request, message="Success", page_size=20):
    """
    Paginated list inside the standard envelope
    """
    paginator = PageNumberPagination()
    paginator.page_size = page_size
    page = paginator.paginate_queryset(queryset, request)

    if page is None:
        data = serializer_class(queryset, many=True).data
        return success_response({
            "list": data,
            "page": {"pageNum": 1, "pageSize": len(data), "total": len(data), "totalPages": 1}
        }, message)

    return success_response({
        "list": serializer_class(page, many=True).data,
        "page": {
            "pageNum": paginator.page.number,
            "pageSize": paginator.page_size,
            "total": paginator.page.paginator.count,
            "totalPages": paginator.page.paginator.num_pages
        }
    }, message)
