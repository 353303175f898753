"""Google Calendar v3 adapter (optional).

Install with:
  pip install "patro[google]"

Authentication is the caller's job: pass a valid OAuth access token. A 401 is
reported as TransportError like any other failure; nothing is retried.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

from patro.core.errors import TransportError
from .client import EventDraft

logger = logging.getLogger(__name__)

API_BASE = "https://www.googleapis.com/calendar/v3"


def require_requests():
    """Raise a clear error if the google extra isn't installed."""
    try:
        import requests  # noqa: F401
    except ImportError as e:
        raise RuntimeError('Google Calendar support requires: pip install "patro[google]"') from e
    return requests


def _error_message(resp) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason
    err = body.get("error") if isinstance(body, dict) else None
    if isinstance(err, dict):
        return err.get("message") or str(err)
    return str(err or body)


class GoogleCalendarClient:
    def __init__(self, access_token: str, *, timeout: float = 30.0, session=None):
        requests = require_requests()
        self._requests = requests
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {access_token}"})

    def _events_url(self, calendar_id: str, event_id: str | None = None) -> str:
        url = f"{API_BASE}/calendars/{quote(calendar_id, safe='')}/events"
        if event_id is not None:
            url += f"/{quote(event_id, safe='')}"
        return url

    def _send(self, action: str, method: str, url: str, **kwargs):
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except self._requests.RequestException as e:
            raise TransportError(f"Failed to {action} event: {e}") from e
        if not resp.ok:
            raise TransportError(f"Failed to {action} event: HTTP {resp.status_code} {_error_message(resp)}")
        return resp

    def create(self, calendar_id: str, draft: EventDraft) -> str:
        resp = self._send("create", "POST", self._events_url(calendar_id), json=draft.to_payload())
        ext_id = resp.json().get("id")
        if not ext_id:
            raise TransportError("Failed to create event: response has no id")
        logger.info("Created %s on %s as %s", draft.summary, draft.start, ext_id)
        return ext_id

    def update(self, calendar_id: str, external_id: str, draft: EventDraft) -> None:
        self._send("update", "PATCH", self._events_url(calendar_id, external_id), json=draft.to_payload())
        logger.info("Updated %s (%s)", draft.summary, external_id)

    def delete(self, calendar_id: str, external_id: str) -> None:
        self._send("delete", "DELETE", self._events_url(calendar_id, external_id))
        logger.info("Deleted %s", external_id)
