import logging
import time

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)


class CircuitBreaker:
    """Consecutive-failure breaker kept in the Django cache.

    State is shared by every worker, so a shop that keeps failing is left
    alone for `cooldown` seconds across runs, not just within one.
    After the cooldown a single caller claims the trial slot and is let
    through; everyone else stays blocked until that trial records its outcome.
    """

    def __init__(self, name, threshold=None, cooldown=None):
        self.key = f'shopsync:circuit:{name}'
        self.trial_key = f'{self.key}:trial'
        self.threshold = threshold if threshold is not None else settings.SHOPSYNC_CIRCUIT_THRESHOLD
        self.cooldown = cooldown if cooldown is not None else settings.SHOPSYNC_CIRCUIT_COOLDOWN

    def _state(self):
        return cache.get(self.key) or {'failures': 0, 'opened_at': None}

    def allow(self):
        opened_at = self._state()['opened_at']
        if opened_at is None:
            return True
        if time.time() - opened_at < self.cooldown:
            return False
        # Expires on its own if the trial caller dies before reporting back.
        return cache.add(self.trial_key, True, timeout=self.cooldown or 1)

    def record_success(self):
        cache.delete_many([self.key, self.trial_key])

    def record_failure(self):
        state = self._state()
        state['failures'] += 1
        if state['failures'] >= self.threshold:
            if state['opened_at'] is None:
                logger.warning(
                    "Circuit %s opened after %d consecutive failures", self.key, state['failures'],
                )
            state['opened_at'] = time.time()
        cache.set(self.key, state, timeout=None)
        cache.delete(self.trial_key)
