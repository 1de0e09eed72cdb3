def handler_response(*, handler, success, data=None, error=None, meta=None):
    return {
        "handler": handler,
        "success": success,
        "data": {
            "value": data,
            "meta": meta
        },
        "error": error
    }
