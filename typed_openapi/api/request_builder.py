"""Places projected parameters into HTTP requests."""
import logging
import re
from typing import Any, Dict, List, Optional

import requests

from typed_openapi.config import DEFAULT_CONFIG, EncoderConfig
from typed_openapi.document.models import ParameterLocation
from typed_openapi.errors import MissingRequiredParameter
from typed_openapi.parameters import ParameterEntry, ParameterProjector

logger = logging.getLogger(__name__)

PATH_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


def fill_path(template: str, entries: List[ParameterEntry]) -> str:
    """
    Substitute path entries into a path template

    Args:
        template: Path template (e.g., /items/{item_id})
        entries: Projected path entries

    Returns:
        Concrete path

    Raises:
        MissingRequiredParameter: If a placeholder has no entry
    """
    values = {entry.name: entry.value for entry in entries}
    for name in values:
        if f"{{{name}}}" not in template:
            logger.warning(f"Path parameter {name} has no placeholder in {template}")

    def replace(match):
        name = match.group(1)
        if name not in values:
            raise MissingRequiredParameter(name, ParameterLocation.PATH.value)
        return values[name]

    return PATH_PLACEHOLDER.sub(replace, template)


def build_query_string(entries: List[ParameterEntry]) -> str:
    """Join already-encoded query entries without encoding them again"""
    return "&".join(f"{entry.name}={entry.value}" for entry in entries)


class ParameterRequestBuilder:
    """
    Builds requests.Request objects from typed parameter records

    Usage:
    ```python
    builder = ParameterRequestBuilder("https://api.example.com")
    request = builder.build("GET", "/users/{user_id}", path=UserPath(user_id=7), query=Page(limit=10))
    response = builder.send(request)
    ```
    """

    def __init__(
        self,
        base_url: str,
        config: EncoderConfig = DEFAULT_CONFIG,
        session: Optional[requests.Session] = None,
        timeout: int = 30,
    ):
        """
        Initialize ParameterRequestBuilder

        Args:
            base_url: Base API URL
            config: Encoder configuration shared with the projector
            session: Session used by send() (a new one by default)
            timeout: HTTP request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.projector = ParameterProjector(config)
        self.session = session or requests.Session()
        self.timeout = timeout

    def _entries(self, value: Any, location: ParameterLocation) -> List[ParameterEntry]:
        if value is None:
            return []
        return self.projector.project(value, location)

    def build(
        self,
        method: str,
        path_template: str,
        path: Any = None,
        query: Any = None,
        headers: Any = None,
        cookies: Any = None,
        json: Any = None,
    ) -> requests.Request:
        """
        Build a request with parameters taken from typed records

        Args:
            method: HTTP method
            path_template: Path with {name} placeholders
            path: Record projected to path parameters
            query: Record projected to query parameters
            headers: Record projected to headers
            cookies: Record projected to cookies
            json: Optional JSON body, passed through untouched

        Returns:
            Unprepared requests.Request
        """
        url = self.base_url + fill_path(path_template, self._entries(path, ParameterLocation.PATH))

        query_entries = self._entries(query, ParameterLocation.QUERY)
        if query_entries:
            url = f"{url}?{build_query_string(query_entries)}"

        header_values: Dict[str, str] = {}
        for entry in self._entries(headers, ParameterLocation.HEADER):
            if entry.name in header_values:
                header_values[entry.name] = f"{header_values[entry.name]}, {entry.value}"
            else:
                header_values[entry.name] = entry.value

        cookie_values = {
            entry.name: entry.value for entry in self._entries(cookies, ParameterLocation.COOKIE)
        }

        logger.debug(f"Built {method.upper()} {url}")
        return requests.Request(
            method=method.upper(),
            url=url,
            headers=header_values,
            cookies=cookie_values,
            json=json,
        )

    def prepare(self, request: requests.Request) -> requests.PreparedRequest:
        return self.session.prepare_request(request)

    def send(self, request: requests.Request) -> requests.Response:
        """
        Send a built request

        Raises:
            requests.exceptions.RequestException: On transport errors
        """
        response = self.session.send(self.prepare(request), timeout=self.timeout)
        logger.info(f"{request.method} {request.url} -> {response.status_code}")
        return response
