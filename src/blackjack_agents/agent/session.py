"""Session-scoped model availability."""

import logging

from blackjack_agents.agent.model_channel import BaseModelChannel

logger = logging.getLogger(__name__)


class SessionContext:
    """
    Remembers whether the model may be used for the rest of the session.

    The availability probe runs at most once; its result is cached until :meth:`reset`.  A rate
    limit seen mid-session forces the fallback path for every later turn.
    """

    def __init__(self) -> None:
        self._available: bool | None = None
        self.rate_limited = False

    @property
    def probed(self) -> bool:
        return self._available is not None

    def is_model_available(self, channel: BaseModelChannel) -> bool:
        """Probe *channel* on first use, then answer from the cache."""
        if self.rate_limited:
            return False
        if self._available is None:
            logger.info("Checking model API availability...")
            self._available = channel.probe()
        return self._available

    def disable_model(self) -> None:
        """Skip the probe and use the rule-based fallback until :meth:`reset`."""
        self._available = False

    def mark_rate_limited(self) -> None:
        logger.warning("Rate limited - switching to fallback for this session")
        self.rate_limited = True
        self._available = False

    def reset(self) -> None:
        """Forget the probe result and any rate limit."""
        self._available = None
        self.rate_limited = False
