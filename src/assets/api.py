"""JSON API plumbing: body parsing, input validation and error mapping."""

import functools
import json
import logging
import re

from django_ratelimit.exceptions import Ratelimited

from django.core.exceptions import (
    NON_FIELD_ERRORS,
    ObjectDoesNotExist,
    ValidationError,
)
from django.db import OperationalError
from django.http import Http404, JsonResponse
from django.views.decorators.http import require_http_methods

from .exceptions import ConflictError

logger = logging.getLogger(__name__)

DATABASE_UNAVAILABLE = (
    "Database connection failed. Check DATABASE_URL and make sure the "
    "database server is running."
)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class InvalidInput(Exception):
    """Request input failed validation; ``details`` maps field -> errors."""

    def __init__(self, details, message="Invalid input"):
        super().__init__(message)
        self.message = message
        self.details = details


def to_snake(name):
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def to_camel(name):
    if name.startswith("_"):
        return name
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def snake_keys(value):
    """Recursively convert camelCase dict keys to snake_case."""
    if isinstance(value, dict):
        return {to_snake(k): snake_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [snake_keys(v) for v in value]
    return value


def parse_json(request):
    """Decode a JSON object body with snake_case keys."""
    try:
        data = json.loads(request.body or b"{}")
    except (json.JSONDecodeError, ValueError):
        raise InvalidInput({}, message="Invalid JSON")
    if not isinstance(data, dict):
        raise InvalidInput({NON_FIELD_ERRORS: ["Expected a JSON object."]})
    return snake_keys(data)


def form_errors(form, prefix=""):
    return {
        prefix + to_camel(field): [e["message"] for e in errors]
        for field, errors in form.errors.get_json_data().items()
    }


def validation_details(exc):
    if hasattr(exc, "error_dict"):
        return {to_camel(k): v for k, v in exc.message_dict.items()}
    return {NON_FIELD_ERRORS: exc.messages}


def clean_form(form_class, data, files=None, partial=False):
    """Validate ``data`` with ``form_class`` and return cleaned data.

    With ``partial`` every field becomes optional and only the keys
    present in ``data`` are returned, for PATCH semantics.
    """
    form = form_class(data, files)
    if partial:
        for field in form.fields.values():
            field.required = False
    if not form.is_valid():
        raise InvalidInput(form_errors(form))
    if partial:
        return {k: v for k, v in form.cleaned_data.items() if k in data}
    return form.cleaned_data


def clean_items(form_class, items, field, required=False):
    """Validate a list of nested objects, one form per item."""
    label = to_camel(field)
    if items is None:
        items = []
    if not isinstance(items, list):
        raise InvalidInput({label: ["Expected a list."]})
    if required and not items:
        raise InvalidInput({label: ["At least one item is required."]})
    cleaned, errors = [], {}
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            errors[f"{label}.{index}"] = ["Expected an object."]
            continue
        form = form_class(item)
        if form.is_valid():
            cleaned.append(form.cleaned_data)
        else:
            errors.update(form_errors(form, prefix=f"{label}.{index}."))
    if errors:
        raise InvalidInput(errors)
    return cleaned


def api_view(methods):
    """Wrap a JSON endpoint: auth gate, allowed methods and error mapping.

    Anonymous callers get 401. Validation and conflict errors become
    400, missing objects 404, an unreachable database 503 and anything
    else a generic 500 with the traceback logged.
    """

    def decorator(view):
        @functools.wraps(view)
        def wrapper(request, *args, **kwargs):
            if not request.user.is_authenticated:
                return JsonResponse({"error": "Unauthorized"}, status=401)
            try:
                return view(request, *args, **kwargs)
            except Ratelimited:
                raise
            except InvalidInput as exc:
                body = {"error": exc.message}
                if exc.details:
                    body["details"] = exc.details
                return JsonResponse(body, status=400)
            except ValidationError as exc:
                return JsonResponse(
                    {
                        "error": "Invalid input",
                        "details": validation_details(exc),
                    },
                    status=400,
                )
            except ConflictError as exc:
                body = {"error": exc.message}
                if exc.field:
                    body["details"] = {to_camel(exc.field): [exc.message]}
                return JsonResponse(body, status=400)
            except (Http404, ObjectDoesNotExist):
                return JsonResponse({"error": "Not found"}, status=404)
            except OperationalError:
                logger.error(
                    "Database unavailable in %s", view.__name__, exc_info=True
                )
                return JsonResponse(
                    {
                        "error": DATABASE_UNAVAILABLE,
                        "details": (
                            "The application cannot reach the database "
                            "server. It may be restarting or unreachable "
                            "over the network."
                        ),
                    },
                    status=503,
                )
            except Exception:
                logger.exception("Unhandled error in %s", view.__name__)
                return JsonResponse(
                    {"error": "Internal server error"}, status=500
                )

        return require_http_methods(methods)(wrapper)

    return decorator
