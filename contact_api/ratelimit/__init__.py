import time

from fastapi.requests import Request

from contact_api.errors import RateLimitExceeded
from contact_api.utils.my_logger import init_logger
from contact_api.utils.utils import get_client_ip

RATE_LIMIT_MESSAGE: str = "Too many contact submissions. Please try again later."


class RateLimit:
    """
    **RateLimit**
         sliding window of accepted request times for a single client address,
         at most max_requests inside any window of duration seconds
    """
    def __init__(self, max_requests: int = 5, duration: int = 15 * 60):
        self.max_requests = max_requests
        self.duration_seconds = duration
        self.requests: list[float] = []

    def _discard_expired(self, now: float) -> None:
        self.requests = [r for r in self.requests if r > now - self.duration_seconds]

    def is_limit_exceeded(self, now: float | None = None) -> bool:
        now = time.monotonic() if now is None else now
        # remove old requests from the list
        self._discard_expired(now)
        # check if limit is exceeded
        if len(self.requests) >= self.max_requests:
            return True
        self.requests.append(now)
        return False

    def remaining(self) -> int:
        return max(self.max_requests - len(self.requests), 0)

    def reset_after(self, now: float | None = None) -> int:
        """seconds until the oldest request in the window expires"""
        if not self.requests:
            return 0
        now = time.monotonic() if now is None else now
        return max(int(self.requests[0] + self.duration_seconds - now + 0.999), 0)

    def is_idle(self, now: float) -> bool:
        self._discard_expired(now)
        return not self.requests


class IPRateLimiter:
    """
        Keeps one RateLimit per client address, used as a dependency on the contact route
    """
    max_tracked_addresses: int = 10_000

    def __init__(self, max_requests: int, duration: int, trust_proxy: bool = True):
        self.max_requests = max_requests
        self.duration = duration
        self.trust_proxy = trust_proxy
        self.ip_rate_limits: dict[str, RateLimit] = {}
        self._logger = init_logger("contact-rate-limit")

    def _prune(self, now: float) -> None:
        idle = [ip for ip, limit in self.ip_rate_limits.items() if limit.is_idle(now)]
        for ip in idle:
            del self.ip_rate_limits[ip]

    def check(self, ip_address: str) -> dict[str, int]:
        """
            records a request from ip_address, raises RateLimitExceeded when over the limit
        :param ip_address:
        :return: rate limit headers values
        """
        now = time.monotonic()
        if ip_address not in self.ip_rate_limits:
            if len(self.ip_rate_limits) >= self.max_tracked_addresses:
                self._prune(now)
            self.ip_rate_limits[ip_address] = RateLimit(max_requests=self.max_requests, duration=self.duration)

        rate_limit = self.ip_rate_limits[ip_address]
        exceeded = rate_limit.is_limit_exceeded(now=now)
        state = {'limit': self.max_requests, 'remaining': rate_limit.remaining(),
                 'reset': rate_limit.reset_after(now=now)}
        if exceeded:
            self._logger.warning(f"""
            Rate Limit Exceeded
                request from = {ip_address}
                limit = {self.max_requests} per {self.duration} seconds
                reset_after = {state['reset']} seconds
            """)
            raise RateLimitExceeded(message=RATE_LIMIT_MESSAGE, rate_limit=state)
        return state

def rate_limit_headers(state: dict[str, int]) -> dict[str, str]:
    return {
        'RateLimit-Limit': str(state['limit']),
        'RateLimit-Remaining': str(state['remaining']),
        'RateLimit-Reset': str(state['reset'])
    }


async def contact_rate_limit(request: Request) -> dict[str, int]:
    """
        **contact_rate_limit**
            dependency applied to contact submissions only
    """
    limiter: IPRateLimiter = request.app.state.rate_limiter
    state = limiter.check(get_client_ip(request, trust_proxy=limiter.trust_proxy))
    request.state.rate_limit = state
    return state
