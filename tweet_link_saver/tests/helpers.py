from unittest.mock import Mock


def make_response(payload=None, status_code=200):
    """Stand-in for a requests.Response"""
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload if payload is not None else {}
    return response
