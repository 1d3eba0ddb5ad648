"""
Process-wide connection state.

At most one Session is live. connect/disconnect are the only mutators and
are serialized by a lock; each call takes a new generation number so a
connect that finishes after a later disconnect (or connect) is discarded
instead of resurrecting a stale Session.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from .errors import InvalidCredentials, NotAuthenticated, SessionSuperseded
from .tracker_api import Credentials, TrackerClient

logger = logging.getLogger(__name__)

ClientFactory = Callable[[Credentials], TrackerClient]


@dataclass(frozen=True)
class Session:
    credentials: Credentials
    client: TrackerClient
    generation: int


class SessionState:
    """Owns the single live Session."""

    def __init__(self, client_factory: Optional[ClientFactory] = None):
        self._client_factory = client_factory or TrackerClient.from_credentials
        self._lock = threading.Lock()
        self._generation = 0
        self._session: Optional[Session] = None

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def current(self) -> Optional[Session]:
        with self._lock:
            return self._session

    def require(self) -> Session:
        session = self.current()
        if session is None:
            raise NotAuthenticated("Not connected to Jira")
        return session

    def connect(self, credentials: Credentials) -> Session:
        """
        Authenticate and install a new Session.

        Raises InvalidCredentials when the server rejects the credentials,
        SessionSuperseded when a later connect/disconnect won the race, and
        any other ClientError unchanged. Nothing is stored on failure.
        """
        with self._lock:
            self._generation += 1
            generation = self._generation

        client = self._client_factory(credentials)
        try:
            authenticated = client.authenticate()
        except Exception:
            client.close()
            raise

        if not authenticated:
            client.close()
            raise InvalidCredentials(f"Jira rejected the credentials for {credentials.base_url}")

        session = Session(credentials, client, generation)
        previous = None
        with self._lock:
            installed = generation == self._generation
            if installed:
                previous = self._session
                self._session = session

        if not installed:
            client.close()
            logger.info("Discarding connect #%d to %s: superseded", generation, credentials.base_url)
            raise SessionSuperseded("Connection was superseded by a later connect or disconnect")

        if previous is not None:
            previous.client.close()
        logger.info("Connected to %s (session #%d)", credentials.base_url, generation)
        return session

    def disconnect(self) -> None:
        """Clear the Session. Idempotent; the remote side is not contacted."""
        with self._lock:
            self._generation += 1
            previous = self._session
            self._session = None

        if previous is not None:
            previous.client.close()
            logger.info("Disconnected from %s", previous.credentials.base_url)
