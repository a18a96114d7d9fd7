"""Shared parsing of list query parameters."""

from rest_framework import serializers

from common.exceptions import DomainValidationError


class LimitQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(min_value=1, required=False)


def parse_limit(request, default=None):
    """
    Read ?limit= from the request.

    Returns default when the parameter is absent or empty; raises
    DomainValidationError when it is not a positive integer.
    """
    raw = request.query_params.get("limit")
    if raw in (None, ""):
        return default

    serializer = LimitQuerySerializer(data={"limit": raw})
    if not serializer.is_valid():
        raise DomainValidationError("limit must be a positive integer", error_code="invalid_limit")
    return serializer.validated_data["limit"]
