from ..exceptions import NotFoundError


def get_or_not_found(queryset, pk, message):
    """Fetch ``pk`` from ``queryset`` or raise NotFoundError"""
    try:
        return queryset.get(pk=pk)
    except (queryset.model.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(message)
