"""
Response envelope helpers.

Every JSON body carries ``error`` and ``message`` next to its payload.
"""

from typing import Any, Dict

from fastapi.encoders import jsonable_encoder


def envelope(message: str, **payload: Any) -> Dict[str, Any]:
    """Build a success body: ``{"error": False, "message": ..., **payload}``.

    Models in the payload are encoded by alias, so clients see camelCase keys.
    """
    return {"error": False, "message": message, **jsonable_encoder(payload)}


def error_envelope(message: str) -> Dict[str, Any]:
    return {"error": True, "message": message}
