"""
Success envelope used by every API view.
"""
from rest_framework import status
from rest_framework.response import Response


def api_response(data=None, meta=None, status_code=status.HTTP_200_OK, message=None):
    """
    Wrap a payload as ``{"success": true, "data": ..., "meta": {...}}``.

    List payloads get ``meta.count`` unless the caller already set it.
    """
    payload = {'success': True}
    if message:
        payload['message'] = message
    if data is not None:
        payload['data'] = data

    meta = dict(meta or {})
    if isinstance(data, (list, tuple)):
        meta.setdefault('count', len(data))
    if meta:
        payload['meta'] = meta

    return Response(payload, status=status_code)
