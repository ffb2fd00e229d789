"""Canvas API client for making authenticated requests."""

import logging
import requests
from typing import Dict, Any, Optional, List, Union
from config import CANVAS_BASE_URL, CANVAS_TOKEN
from constants import DEFAULT_PER_PAGE, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


class CanvasAPIError(Exception):
    """Custom exception for Canvas API errors."""
    pass


class CanvasAuthError(CanvasAPIError):
    """Raised when Canvas rejects the access token (revoked or expired)."""
    pass


class CanvasClient:
    """Client for interacting with the Canvas LMS API."""
    
    def __init__(self, base_url: Optional[str] = CANVAS_BASE_URL, token: Optional[str] = CANVAS_TOKEN) -> None:
        """Initialize the Canvas API client."""
        if not base_url or not token:
            raise ValueError("Canvas API base URL and token are required")
        
        self.base_url = base_url.rstrip('/')
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json"
        }

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _check(self, response: requests.Response) -> None:
        if response.status_code in (401, 403):
            raise CanvasAuthError(
                f"Canvas rejected the access token ({response.status_code})"
            )
        response.raise_for_status()

    def get_page(
        self,
        endpoint: str,
        page: int,
        per_page: int = DEFAULT_PER_PAGE,
        params: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """Fetch a single numbered page of a list endpoint."""
        query = {**(params or {}), "page": page, "per_page": per_page}

        try:
            response = requests.get(
                self._url(endpoint), headers=self.headers, params=query, timeout=REQUEST_TIMEOUT
            )
            self._check(response)
            data = response.json()
        except CanvasAuthError:
            raise
        except (requests.exceptions.RequestException, ValueError) as e:
            raise CanvasAPIError(f"Canvas API request failed for page {page}: {e}") from e

        if not isinstance(data, list):
            raise CanvasAPIError(f"Expected a list from {endpoint}, got {type(data).__name__}")

        logger.debug("Fetched %s page %d (%d items)", endpoint, page, len(data))
        return data

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Union[List[Dict[str, Any]], Dict[str, Any]]:
        """Make a single GET request and return the decoded JSON body."""
        try:
            response = requests.get(
                self._url(endpoint), headers=self.headers, params=params, timeout=REQUEST_TIMEOUT
            )
            self._check(response)
            return response.json()
        except CanvasAuthError:
            raise
        except (requests.exceptions.RequestException, ValueError) as e:
            raise CanvasAPIError(f"Canvas API request failed: {e}") from e

    def post(self, endpoint: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Make a POST request with a JSON body."""
        try:
            response = requests.post(
                self._url(endpoint), headers=self.headers, json=data, timeout=REQUEST_TIMEOUT
            )
            self._check(response)
            return response.json()
        except CanvasAuthError:
            raise
        except (requests.exceptions.RequestException, ValueError) as e:
            raise CanvasAPIError(f"Canvas API request failed: {e}") from e
