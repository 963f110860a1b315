"""Compose ERPNext REST requests and interpret the proxy's replies."""

import json
import shlex
from datetime import date
from typing import Any
from urllib.parse import quote

import httpx

from core.config import TARGET_HEADER
from core.exceptions import ComposerError, InvalidJSON
from core.request_types import ApiCredentials, ComposerResult, ForwardingRequest

RESOURCE_PREFIX = "/api/resource"
LOGGED_USER_ENDPOINT = "/api/method/frappe.auth.get_logged_user"
DOCTYPE_ENDPOINTS = (
    "/api/method/frappe.desk.doctype.data_import_tool.data_import_tool.get_doctypes",
    "/api/method/frappe.desk.doctype.data_import_tool.data_import_tool.get_doctypes_for_import",
)
DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def normalize_base_url(url: str) -> str:
    """Trim, default to https and drop the trailing slash."""
    clean = url.strip()
    if clean and not clean.startswith(("http://", "https://")):
        clean = "https://" + clean
    return clean.rstrip("/")


def validate_url(url: str) -> bool:
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.host)


def resource_path(doctype: str, record: str | None = None) -> str:
    path = f"{RESOURCE_PREFIX}/{quote(doctype, safe='')}"
    if record:
        path += f"/{quote(record, safe='')}"
    return path


def field_template(field: str, field_type: str = "text") -> dict[str, Any]:
    """Single-field body used to update one field of a record."""
    if field_type in ("number", "checkbox"):
        value: Any = 0
    elif field_type == "date":
        value = date.today().isoformat()
    else:
        value = ""
    return {field: value}


def describe_error(status: int, method: str = "GET") -> str | None:
    """Human-readable explanation for an ERPNext error status."""
    method = method.upper()
    if status == 401:
        return "Authentication failed: Please check your API Key and Secret"
    if status == 403:
        action = {
            "GET": "read this Doctype",
            "POST": "create records in this Doctype",
            "PUT": "update records in this Doctype",
            "DELETE": "delete records in this Doctype",
        }.get(method, "perform this operation on this Doctype")
        return (
            f"Permission denied: You don't have permission to {action}. "
            "Please check your user permissions in ERPNext."
        )
    if status == 404:
        if method == "GET":
            return (
                "Doctype not found: Please check that the doctype name is correct "
                "and exists in your ERPNext instance."
            )
        return "API endpoint not found: Please check your base URL and doctype"
    if status == 400:
        if method in ("POST", "PUT"):
            return (
                "Bad request: Please check your request data format and required fields. "
                "Make sure all required fields are provided."
            )
        return "Bad request: Please check your request data and parameters"
    if status == 405:
        return (
            f"Method not allowed: {method} method is not supported for this endpoint. "
            "Please check the API documentation."
        )
    if status == 422:
        return "Validation error: The request data is invalid. Please check your input data and try again."
    if status >= 500:
        return "Server error: ERPNext server is having issues. Please try again later."
    return None


class RequestComposer:
    """Translate user selections into forwarding requests."""

    def __init__(self, target_header: str = TARGET_HEADER) -> None:
        self.target_header = target_header

    def compose(
        self,
        method: str,
        base_url: str,
        credentials: ApiCredentials,
        *,
        doctype: str | None = None,
        record: str | None = None,
        path: str | None = None,
        body: str = "",
        params: str = "",
        headers: dict[str, str] | None = None,
    ) -> ForwardingRequest:
        """Build a request for the proxy.

        Raises:
            ComposerError: endpoint, base URL or credentials are missing.
            InvalidJSON: a non-GET body is not valid JSON.
        """
        method = method.upper()
        if not path and not doctype:
            raise ComposerError("Please select or enter an endpoint")
        if not base_url:
            raise ComposerError("Please provide Base URL")
        if not credentials.complete:
            raise ComposerError("Please provide API Key and API Secret")

        payload = None
        if method != "GET" and body.strip():
            try:
                json.loads(body)
            except json.JSONDecodeError as e:
                raise InvalidJSON(f"Request body must be valid JSON: {e}") from e
            payload = body.encode("utf-8")

        target = normalize_base_url(base_url)
        request_headers = {
            **(headers or {}),
            **DEFAULT_HEADERS,
            "Authorization": credentials.authorization(),
            self.target_header: target,
        }
        return ForwardingRequest(
            method=method,
            path=path or resource_path(doctype, record),
            target=target,
            headers=request_headers,
            query=params.lstrip("?"),
            body=payload,
        )

    def to_curl(self, request: ForwardingRequest) -> str:
        """Copy-pasteable curl command aimed directly at the upstream."""
        url = request.target + request.path
        if request.query:
            url += ("&" if "?" in request.path else "?") + request.query

        parts = [f"curl -X {request.method}"]
        for key, value in request.headers.items():
            if key.lower() == self.target_header.lower() or not value.strip():
                continue
            parts.append(f"-H {shlex.quote(f'{key}: {value}')}")
        if request.method in ("POST", "PUT") and request.body:
            text = request.body.decode("utf-8")
            if text.strip() not in ("", "{}"):
                parts.append(f"-d {shlex.quote(text)}")
        parts.append(shlex.quote(url))
        return " \\\n  ".join(parts)


class ApiTesterClient:
    """Send composed requests and turn replies into results.

    ``via_proxy`` keeps the target header so the proxy can route the call;
    without it the client's base URL must point at ERPNext directly.
    """

    def __init__(
        self,
        http: httpx.Client,
        composer: RequestComposer | None = None,
        *,
        via_proxy: bool = True,
    ) -> None:
        self._http = http
        self._composer = composer or RequestComposer()
        self._via_proxy = via_proxy

    def send(self, request: ForwardingRequest) -> ComposerResult:
        headers = dict(request.headers)
        if not self._via_proxy:
            headers.pop(self._composer.target_header, None)
        url = request.path
        if request.query:
            url += ("&" if "?" in url else "?") + request.query

        try:
            response = self._http.request(
                request.method,
                url,
                headers=headers,
                content=request.body,
            )
        except httpx.TimeoutException:
            return ComposerResult(success=False, error="Request timed out: the server took too long to respond")
        except httpx.RequestError as e:
            return ComposerResult(
                success=False,
                error=f"Network error: Please check your internet connection and base URL ({e})",
            )

        data = _json_or_text(response)
        if response.is_success:
            return ComposerResult(success=True, status=response.status_code, data=data)
        return ComposerResult(
            success=False,
            status=response.status_code,
            data=data,
            error=self._error_message(response.status_code, request.method, data),
        )

    def request(
        self,
        method: str,
        base_url: str,
        credentials: ApiCredentials,
        **kwargs: Any,
    ) -> ComposerResult:
        """Compose and send in one step, reporting input errors as results."""
        try:
            composed = self._composer.compose(method, base_url, credentials, **kwargs)
        except ComposerError as e:
            return ComposerResult(success=False, error=str(e))
        return self.send(composed)

    def test_connection(self, base_url: str, credentials: ApiCredentials) -> ComposerResult:
        if not base_url:
            return ComposerResult(success=False, error="Base URL is required")
        return self.request("GET", base_url, credentials, path=LOGGED_USER_ENDPOINT)

    def fetch_doctypes(self, base_url: str, credentials: ApiCredentials) -> ComposerResult:
        """Try the doctype listing methods, then fall back to /api/resource."""
        last: ComposerResult | None = None
        for endpoint in DOCTYPE_ENDPOINTS:
            result = self.request("GET", base_url, credentials, path=endpoint)
            if result.success:
                doctypes = _extract_doctypes(result.data)
                if doctypes:
                    return ComposerResult(success=True, status=result.status, data=doctypes)
            else:
                last = result

        result = self.request("GET", base_url, credentials, path=RESOURCE_PREFIX)
        if result.success and isinstance(result.data, dict):
            names = [
                item.get("doctype")
                for item in result.data.get("data") or []
                if isinstance(item, dict)
            ]
            doctypes = list(dict.fromkeys(name for name in names if name))
            if doctypes:
                return ComposerResult(success=True, status=result.status, data=doctypes)

        if last is not None:
            return last
        return ComposerResult(success=False, error="Failed to fetch doctypes")

    @staticmethod
    def _error_message(status: int, method: str, data: Any) -> str:
        if isinstance(data, dict):
            # proxy transport failure
            if status == 500 and data.get("error") and data.get("details"):
                return f"{data['error']}: {data['details']}"
        described = describe_error(status, method)
        if described:
            return described
        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])
        return f"Request failed with status {status}"


def _json_or_text(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _extract_doctypes(data: Any) -> list[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        message = data.get("message")
        if isinstance(message, list):
            return message
        doctypes = data.get("doctypes")
        if isinstance(doctypes, list):
            return doctypes
    return []
