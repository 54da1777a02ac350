import time
import httpx
from lendit.configs import LENDIT_HTTP_HEADERS
import logging

logger = logging.getLogger(__name__)


class LendingClient:
    """Thin HTTP client for the lending API. Retries `503 Busy` answers
    with exponential backoff; every other failure is returned to the
    caller to decide on (e.g. reserve after a 409 no_copies_available).
    """

    API_URL = "http://localhost:8080/v1/api"
    HTTP_HEADERS = LENDIT_HTTP_HEADERS
    MAX_ATTEMPTS = 5
    BACKOFF = 0.25

    def __init__(self, token: str = None, api_url: str = None, transport=None, timeout: int = 30):
        headers = dict(self.HTTP_HEADERS)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.http = httpx.Client(
            base_url=api_url or self.API_URL,
            headers=headers,
            transport=transport,
            timeout=timeout,
        )

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        self.http.close()

    def request(self, method: str, path: str, **kwargs) -> httpx.Response:
        delay = self.BACKOFF
        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            response = self.http.request(method, path, **kwargs)
            if response.status_code != 503 or attempt == self.MAX_ATTEMPTS:
                return response
            wait = max(delay, float(response.headers.get("Retry-After", 0) or 0))
            logger.info(f"{method} {path} busy (attempt {attempt}), retrying in {wait}s")
            time.sleep(wait)
            delay *= 2
        return response

    def _json(self, method, path, **kwargs):
        response = self.request(method, path, **kwargs)
        response.raise_for_status()
        return response.json() if response.content else None

    def availability(self, item_id: int):
        return self._json("GET", f"/items/{item_id}/availability")

    def borrow(self, item_id: int):
        return self._json("POST", f"/items/{item_id}/borrow")

    def reserve(self, item_id: int):
        return self._json("POST", f"/items/{item_id}/reserve")

    def renew(self, loan_id: int):
        return self._json("POST", f"/loans/{loan_id}/renew")

    def return_item(self, loan_id: int):
        return self._json("POST", f"/loans/{loan_id}/return")

    def cancel(self, hold_id: int):
        return self._json("DELETE", f"/holds/{hold_id}")

    def loans(self, history: bool = False):
        return self._json("GET", "/loans", params={"history": str(history).lower()})

    def holds(self):
        return self._json("GET", "/holds")

    def add_item(self, total_copies: int, loan_period_days: int = None,
                 max_renewals: int = None, title: str = None):
        payload = {"total_copies": total_copies, "title": title}
        if loan_period_days is not None:
            payload["loan_period_days"] = loan_period_days
        if max_renewals is not None:
            payload["max_renewals"] = max_renewals
        return self._json("POST", "/items", json=payload)

    def issue_token(self, patron_id: str) -> str:
        return self._json("POST", "/token", json={"patron_id": patron_id})["token"]
