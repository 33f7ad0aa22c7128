import random


def backoff_delay(attempt, base_delay, retry_after=None):
    """Exponential backoff with full jitter; a server-provided Retry-After wins if longer."""
    delay = random.uniform(0, base_delay * (2 ** attempt))
    if retry_after is not None:
        try:
            delay = max(float(retry_after), delay)
        except (TypeError, ValueError):
            pass
    return delay
