"""Request construction.

Builds requests.PreparedRequest objects whose bodies are fully materialised in
memory, so the retry engine can resend them verbatim on every attempt.
"""

from __future__ import annotations

import json as jsonlib
import posixpath
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests
from requests.structures import CaseInsensitiveDict

from httpretry.domain.errors import InvalidArgument

Params = Union[Mapping[str, Any], Sequence[Tuple[str, Any]]]

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
XML_CONTENT_TYPE = 'application/xml; charset="UTF-8"'
BINARY_CONTENT_TYPE = "application/octet-stream"


def _read_all(body: Any) -> Union[str, bytes]:
    if body is None or isinstance(body, (str, bytes)):
        return body
    if isinstance(body, (bytearray, memoryview)):
        return bytes(body)
    if hasattr(body, "read"):
        return body.read()
    raise InvalidArgument(f"unsupported body type: {type(body).__name__}")


def _encode_xml(data: Union[ET.Element, str, bytes]) -> bytes:
    if isinstance(data, ET.Element):
        return ET.tostring(data, encoding="UTF-8", xml_declaration=True)
    if isinstance(data, str):
        data = data.encode("utf-8")
    if not data.lstrip().startswith(b"<?xml"):
        data = b'<?xml version="1.0" encoding="UTF-8"?>\n' + data
    return data


def _param_items(params: Optional[Params]) -> List[Tuple[str, str]]:
    if not params:
        return []
    items = params.items() if isinstance(params, Mapping) else params
    result = []
    for key, value in items:
        # A list value adds the key once per element
        if isinstance(value, (list, tuple)):
            result.extend((key, str(v)) for v in value)
        else:
            result.append((key, str(value)))
    return result


def _encode_body(
    headers: CaseInsensitiveDict,
    body: Any,
    json: Any,
    form: Optional[Params],
    xml: Any,
    binary: Any,
) -> Union[None, str, bytes]:
    given = [name for name, value in (
        ("body", body), ("json", json), ("form", form), ("xml", xml), ("binary", binary)
    ) if value is not None]
    if len(given) > 1:
        raise InvalidArgument(f"only one body option is allowed, got: {', '.join(given)}")

    if json is not None:
        headers["Content-Type"] = JSON_CONTENT_TYPE
        return jsonlib.dumps(json).encode("utf-8")
    if form is not None:
        headers["Content-Type"] = FORM_CONTENT_TYPE
        return urlencode(_param_items(form))
    if xml is not None:
        headers["Content-Type"] = XML_CONTENT_TYPE
        return _encode_xml(xml)
    if binary is not None:
        headers.setdefault("Content-Type", BINARY_CONTENT_TYPE)
        return _read_all(binary)
    return _read_all(body)


def new_request(
    method: str,
    url: str,
    *,
    headers: Optional[Mapping[str, str]] = None,
    params: Optional[Params] = None,
    body: Any = None,
    json: Any = None,
    form: Optional[Params] = None,
    xml: Any = None,
    binary: Any = None,
) -> requests.PreparedRequest:
    """Build a replayable request.

    Args:
        method: HTTP method
        url: Absolute URL; its query string is kept and extended by params
        headers: Request headers
        params: Query parameters to append
        body: Raw body (bytes, str or file-like, read into memory)
        json: Object serialised as JSON
        form: Mapping or pairs sent url-encoded
        xml: ElementTree element or XML text
        binary: Bytes or file-like sent as application/octet-stream

    Returns:
        Prepared request

    Raises:
        InvalidArgument: On missing method/url or conflicting body options
    """
    if not method:
        raise InvalidArgument("missing method")
    if not url:
        raise InvalidArgument("missing url")

    merged = CaseInsensitiveDict(headers or {})
    data = _encode_body(merged, body, json, form, xml, binary)

    query = _param_items(params)
    if query:
        parts = urlsplit(url)
        pairs = parse_qsl(parts.query, keep_blank_values=True) + query
        url = urlunsplit(parts._replace(query=urlencode(pairs)))

    return requests.Request(method.upper(), url, headers=dict(merged), data=data).prepare()


class RequestBuilder:
    """Builds requests relative to a base URL with default headers"""

    def __init__(self, base_url: str, headers: Optional[Mapping[str, str]] = None):
        """Initialize builder

        Args:
            base_url: Absolute base URL (scheme and host required)
            headers: Headers sent with every request unless overridden

        Raises:
            InvalidArgument: If base_url is not an absolute URL
        """
        parts = urlsplit(base_url or "")
        if not parts.scheme or not parts.netloc:
            raise InvalidArgument(f"invalid base url: {base_url!r}")
        self._base = parts
        self.headers = dict(headers or {})

    @property
    def base_url(self) -> str:
        return urlunsplit(self._base)

    def url_for(self, path: str = "") -> str:
        """Join path onto the base path, keeping the base query string."""
        joined = self._base.path
        if path:
            joined = posixpath.normpath(posixpath.join(joined or "/", path.lstrip("/")))
            if path.endswith("/") and not joined.endswith("/"):
                joined += "/"
        return urlunsplit(self._base._replace(path=joined))

    def new_request(self, method: str, path: str = "", **options: Any) -> requests.PreparedRequest:
        """Build a request for path; options are those of new_request()."""
        headers: Dict[str, str] = dict(self.headers)
        headers.update(options.pop("headers", None) or {})
        return new_request(method, self.url_for(path), headers=headers, **options)
