from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable, Dict

from flask import jsonify, request

from ..core.exceptions import CollaboratorUnavailable, ConcurrencyConflict, ConfigurationError, ValidationError

logger = logging.getLogger(__name__)


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def json_errors(view: Callable) -> Callable:
    """Map domain exceptions raised by a view to JSON error responses."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        except ConcurrencyConflict as e:
            return jsonify({"success": False, "message": str(e), "retryable": True}), 409
        except CollaboratorUnavailable as e:
            logger.warning("Collaborator unavailable during %s: %s", request.path, e)
            return jsonify({"success": False, "message": str(e), "retryable": True}), 503
        except ConfigurationError as e:
            logger.error("Configuration error during %s: %s", request.path, e)
            return jsonify({"success": False, "message": str(e)}), 500

    return wrapper
