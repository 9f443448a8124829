from typing import Dict, Iterable

from flask import request


def read_payload(list_fields: Iterable[str] = ()) -> Dict:
    """Return the request body from multipart/form data, falling back to JSON."""
    if request.form:
        payload = request.form.to_dict()
        for field in list_fields:
            values = [value for value in request.form.getlist(field) if value.strip()]
            if values:
                payload[field] = values
        return payload
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}
