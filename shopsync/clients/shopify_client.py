import logging
import time

import requests
from django.conf import settings

from shopsync.backoff import backoff_delay
from shopsync.exceptions import CircuitOpenError, ConfigurationError, ProtocolError, TransportError

from .base import BaseClient, Page
from .breaker import CircuitBreaker

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = getattr(settings, 'SHOPSYNC_FETCH_MAX_ATTEMPTS', 3)
RETRY_BASE_DELAY = getattr(settings, 'SHOPSYNC_RETRY_BASE_DELAY', 0.5)
REQUEST_TIMEOUT = getattr(settings, 'SHOPSYNC_REQUEST_TIMEOUT', 30.0)

SORT_KEY = 'UPDATED_AT'


def _error_messages(errors):
    if isinstance(errors, str):
        return [errors]
    if isinstance(errors, dict):
        errors = [errors]
    return [e.get('message', str(e)) if isinstance(e, dict) else str(e) for e in errors]


def _is_throttled(errors):
    if not isinstance(errors, list):
        return False
    return any(
        isinstance(e, dict) and (e.get('extensions') or {}).get('code') == 'THROTTLED'
        for e in errors
    )


class ShopifyClient(BaseClient):
    """Shopify Admin GraphQL API, one connection (products or orders) per client."""

    def __init__(self, target, store_domain=None, access_token=None, api_version=None, breaker=None):
        self.target = target
        store_domain = store_domain or settings.SHOPIFY_STORE_DOMAIN
        self.access_token = access_token or settings.SHOPIFY_ADMIN_API_ACCESS_TOKEN
        api_version = api_version or settings.SHOPIFY_API_VERSION
        if not store_domain or not self.access_token:
            raise ConfigurationError('Shopify store domain or access token is not configured.')
        self.graphql_url = f"https://{store_domain}/admin/api/{api_version}/graphql.json"
        self.breaker = breaker or CircuitBreaker(f'shopify:{target.name}')

    def make_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update({
            'X-Shopify-Access-Token': self.access_token,
            'Content-Type': 'application/json',
        })
        return session

    def fetch_page(self, session, cursor=None, modified_since=None, page_size=50) -> Page:
        if not self.breaker.allow():
            raise CircuitOpenError(
                f"Circuit open for {self.target.name}: too many consecutive failed pages"
            )

        variables = {
            'first': page_size,
            'after': cursor,
            'sortKey': SORT_KEY,
            'reverse': False,
            'query': None,
        }
        if modified_since is not None:
            variables['query'] = f"updated_at:>'{modified_since.isoformat()}'"

        try:
            data = self._post(session, {'query': self.target.query, 'variables': variables})
            page = self._parse_page(data)
        except (TransportError, ProtocolError):
            self.breaker.record_failure()
            raise
        self.breaker.record_success()
        return page

    def _parse_page(self, data):
        connection = data.get(self.target.connection)
        if not isinstance(connection, dict):
            raise ProtocolError(f"Response carries no '{self.target.connection}' connection")

        page_info = connection.get('pageInfo') or {}
        edges = connection.get('edges') or []
        if not isinstance(page_info, dict) or not isinstance(edges, list):
            raise ProtocolError(f"Malformed '{self.target.connection}' connection in response")

        has_next_page = bool(page_info.get('hasNextPage'))
        next_cursor = page_info.get('endCursor')
        if has_next_page and not next_cursor:
            raise ProtocolError('hasNextPage is set but endCursor is missing')

        if not all(isinstance(edge, dict) for edge in edges):
            raise ProtocolError(f"Malformed edge in '{self.target.connection}' connection")
        records = [edge['node'] for edge in edges if edge.get('node')]
        return Page(records, has_next_page, next_cursor)

    def _post(self, session, payload):
        last_error = None
        for attempt in range(MAX_ATTEMPTS):
            retry_after = None
            try:
                response = session.post(self.graphql_url, json=payload, timeout=REQUEST_TIMEOUT)
            except requests.RequestException as exc:
                last_error = TransportError(f"Shopify request failed: {exc}")
                last_error.__cause__ = exc
            else:
                if response.status_code == 429 or response.status_code >= 500:
                    retry_after = response.headers.get('Retry-After')
                    last_error = TransportError(f"Shopify returned HTTP {response.status_code}")
                else:
                    try:
                        body = response.json()
                    except ValueError as exc:
                        raise ProtocolError(
                            f"Shopify returned a non-JSON body (HTTP {response.status_code})"
                        ) from exc
                    if not isinstance(body, dict):
                        raise ProtocolError('Shopify returned an unexpected payload')

                    errors = body.get('errors')
                    if errors and _is_throttled(errors):
                        last_error = TransportError('Shopify throttled the query')
                    elif errors or not response.ok:
                        messages = _error_messages(errors) if errors else [f"HTTP {response.status_code}"]
                        raise ProtocolError(
                            f"Shopify GraphQL API request failed: {', '.join(messages)}",
                            details=messages,
                        )
                    else:
                        data = body.get('data')
                        if not isinstance(data, dict):
                            raise ProtocolError('Shopify response has no data')
                        return data

            if attempt + 1 < MAX_ATTEMPTS:
                delay = backoff_delay(attempt, RETRY_BASE_DELAY, retry_after)
                logger.warning(
                    "%s for %s, attempt %d/%d, waiting %.1fs",
                    last_error, self.target.name, attempt + 1, MAX_ATTEMPTS, delay,
                )
                time.sleep(delay)

        raise TransportError(
            f"{last_error} (gave up after {MAX_ATTEMPTS} attempts)"
        ) from last_error.__cause__
