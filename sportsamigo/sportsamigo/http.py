import json


def is_ajax(request):
    if request.headers.get("x-requested-with") == "XMLHttpRequest":
        return True
    return "application/json" in request.headers.get("accept", "") or request.content_type == "application/json"


def request_data(request):
    """Form fields or a JSON body, whichever the caller sent."""
    if request.content_type == "application/json":
        try:
            data = json.loads(request.body or b"{}")
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
    return request.POST
