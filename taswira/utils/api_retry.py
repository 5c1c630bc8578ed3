"""
Retry handling for provider HTTP calls

Transient failures (timeouts, connection errors, 5xx responses) are retried
with exponential backoff and a growing per-attempt timeout. Repeated
exhausted calls open a circuit breaker so a dead provider fails fast.
Provider-level rejections (4xx, error envelopes) are never retried.
"""
import asyncio
import time
import logging
from typing import Optional, Callable, Any, Dict
import aiohttp

logger = logging.getLogger(__name__)


class CircuitBreakerOpen(Exception):
    """Raised when circuit breaker is open"""
    pass


class ProviderError(Exception):
    """Provider rejected the request; retrying will not help"""

    def __init__(self, message: str, status: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status = status
        self.payload = payload


class APIRetryHandler:
    """
    Retry handler with exponential backoff and circuit breaker.

    Circuit states:
    - CLOSED: calls pass through
    - OPEN: calls fail fast with CircuitBreakerOpen
    - HALF_OPEN: first call after circuit_timeout tries the provider again
    """

    def __init__(
        self,
        name: str = "api",
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        timeout_base: float = 15.0,
        circuit_failure_threshold: int = 5,
        circuit_timeout: float = 60.0
    ):
        """
        Args:
            name: Provider name used in log lines
            max_retries: Attempts per call
            base_delay: Base delay in seconds for exponential backoff
            max_delay: Maximum delay between attempts
            timeout_base: Timeout of the first attempt, +5s per following attempt
            circuit_failure_threshold: Exhausted calls needed to open the circuit
            circuit_timeout: Seconds before an open circuit lets a trial call through
        """
        self.name = name
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.timeout_base = timeout_base
        self.circuit_failure_threshold = circuit_failure_threshold
        self.circuit_timeout = circuit_timeout

        self._failure_count = 0
        self._circuit_open = False
        self._circuit_open_time = 0.0
        self._lock = asyncio.Lock()

    async def _check_circuit(self):
        async with self._lock:
            if self._circuit_open:
                elapsed = time.time() - self._circuit_open_time
                if elapsed >= self.circuit_timeout:
                    logger.info(f"[{self.name}] Circuit breaker attempting recovery (HALF_OPEN)")
                    self._circuit_open = False
                else:
                    raise CircuitBreakerOpen(
                        f"{self.name} temporarily unavailable. "
                        f"Retry in {self.circuit_timeout - elapsed:.1f}s"
                    )

    async def _record_success(self):
        async with self._lock:
            if self._failure_count > 0:
                logger.info(f"[{self.name}] Recovered - resetting failure count from {self._failure_count}")
            self._failure_count = 0
            self._circuit_open = False

    async def _record_failure(self):
        async with self._lock:
            self._failure_count += 1
            logger.warning(f"[{self.name}] Failure count: {self._failure_count}/{self.circuit_failure_threshold}")

            if self._failure_count >= self.circuit_failure_threshold:
                self._circuit_open = True
                self._circuit_open_time = time.time()
                logger.error(
                    f"[{self.name}] Circuit breaker OPENED after {self._failure_count} failed calls. "
                    f"Will retry after {self.circuit_timeout}s"
                )

    def _backoff(self, attempt: int) -> float:
        return min(self.base_delay * (2 ** attempt), self.max_delay)

    async def execute_with_retry(self, api_call: Callable, *args, **kwargs) -> Any:
        """
        Execute an async call with retries and circuit breaker.

        Raises:
            CircuitBreakerOpen: If the circuit is open
            ProviderError: Immediately, when the provider rejects the request
            Exception: The last transient error once attempts are exhausted
        """
        await self._check_circuit()

        last_exception = None

        for attempt in range(self.max_retries):
            timeout_seconds = self.timeout_base + (attempt * 5)
            try:
                logger.debug(
                    f"[{self.name}] Attempt {attempt + 1}/{self.max_retries} "
                    f"(timeout: {timeout_seconds}s)"
                )

                result = await asyncio.wait_for(
                    api_call(*args, **kwargs),
                    timeout=timeout_seconds
                )

                await self._record_success()
                return result

            except asyncio.TimeoutError as e:
                last_exception = e
                logger.warning(
                    f"[{self.name}] Timeout on attempt {attempt + 1}/{self.max_retries} "
                    f"(timeout was {timeout_seconds}s)"
                )

            except aiohttp.ClientError as e:
                last_exception = e
                logger.warning(
                    f"[{self.name}] {type(e).__name__} on attempt {attempt + 1}/{self.max_retries}: {e}"
                )

            except ProviderError:
                # The provider answered; it is up, the request is wrong
                await self._record_success()
                raise

            except Exception as e:
                last_exception = e
                logger.error(f"[{self.name}] Unexpected error: {e}", exc_info=True)
                break

            if attempt < self.max_retries - 1:
                delay = self._backoff(attempt)
                logger.info(f"[{self.name}] Retrying in {delay}s...")
                await asyncio.sleep(delay)

        await self._record_failure()

        logger.error(
            f"[{self.name}] All {self.max_retries} attempts exhausted. "
            f"Last error: {type(last_exception).__name__}: {last_exception}"
        )

        raise last_exception

    def get_stats(self) -> Dict:
        return {
            "name": self.name,
            "failure_count": self._failure_count,
            "circuit_open": self._circuit_open,
        }


vision_api_retry = APIRetryHandler(
    name="vision",
    max_retries=2,
    base_delay=1.5,
    timeout_base=30.0,
    circuit_failure_threshold=5,
    circuit_timeout=60.0
)

prompt_api_retry = APIRetryHandler(
    name="prompt",
    max_retries=2,
    base_delay=2.0,
    timeout_base=30.0,
    circuit_failure_threshold=5,
    circuit_timeout=60.0
)

image_api_retry = APIRetryHandler(
    name="image",
    max_retries=2,
    base_delay=2.0,
    timeout_base=120.0,  # gpt-image-1 edits at high quality are slow
    circuit_failure_threshold=5,
    circuit_timeout=60.0
)

kie_api_retry = APIRetryHandler(
    name="kie",
    max_retries=3,
    base_delay=1.0,
    timeout_base=20.0,
    circuit_failure_threshold=10,
    circuit_timeout=60.0
)

combine_api_retry = APIRetryHandler(
    name="combine",
    max_retries=2,
    base_delay=2.0,
    timeout_base=120.0,  # the service downloads and joins every clip before answering
    circuit_failure_threshold=3,
    circuit_timeout=120.0
)
