from abc import ABC, abstractmethod
from collections import namedtuple

import requests

Page = namedtuple('Page', ['records', 'has_next_page', 'next_cursor'])


class BaseClient(ABC):
    @abstractmethod
    def make_session(self) -> requests.Session:
        """Create and configure an HTTP session with auth headers."""

    @abstractmethod
    def fetch_page(self, session, cursor=None, modified_since=None, page_size=50) -> Page:
        """Fetch one page of raw nested entities, oldest modification first."""
