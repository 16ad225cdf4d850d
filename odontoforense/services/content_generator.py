"""
Generative text client
"""
import time
from typing import Any, Callable, Dict, Optional

import httpx

from config.settings import settings
from odontoforense.services.prompt_builder import PromptBuilder
from odontoforense.services.subjects import ReportSubject
from odontoforense.utils.exceptions import GenerationError
from odontoforense.utils.logger import get_logger
from odontoforense.utils.retry import exponential_backoff, retry

logger = get_logger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 503})

GENERATION_CONFIG = {
    "temperature": 0.7,
    "topK": 1,
    "topP": 1,
    "maxOutputTokens": 2048,
}


def is_retryable(error: Exception) -> bool:
    """Only rate-limit and unavailable responses are retried"""
    return (
        isinstance(error, httpx.HTTPStatusError)
        and error.response.status_code in RETRYABLE_STATUS_CODES
    )


class ContentGenerator:
    """Wraps the generateContent endpoint with bounded retries"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_base: Optional[str] = None,
        max_attempts: Optional[int] = None,
        initial_delay: Optional[float] = None,
        backoff_factor: Optional[float] = None,
        http_client: Optional[httpx.Client] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            api_key: API key (defaults to settings)
            model: model name (defaults to settings)
            api_base: endpoint base URL (defaults to settings)
            max_attempts: attempt budget
            initial_delay: first backoff in seconds
            backoff_factor: backoff multiplier
            http_client: preconfigured httpx client (tests pass a MockTransport)
            prompt_builder: prompt builder
            sleep: sleep function used between attempts
        """
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model = model or settings.gemini_model
        self.api_base = (api_base or settings.gemini_api_base).rstrip("/")
        self.max_attempts = max_attempts or settings.generation_max_attempts
        self.initial_delay = initial_delay if initial_delay is not None else settings.generation_initial_delay
        self.backoff_factor = backoff_factor or settings.generation_backoff_factor
        self.client = http_client or httpx.Client(timeout=settings.gemini_timeout_seconds)
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.sleep = sleep

        logger.info(f"Content generator ready: model={self.model}")

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/models/{self.model}:generateContent"

    @staticmethod
    def build_request(prompt: str) -> Dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": dict(GENERATION_CONFIG),
        }

    @staticmethod
    def extract_text(payload: Dict[str, Any]) -> str:
        """
        Pull candidates[0].content.parts[0].text out of a response

        Raises:
            GenerationError: when the response lacks the expected content
        """
        try:
            return payload["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise GenerationError("response did not contain the expected content")

    def _call(self, prompt: str) -> str:
        response = self.client.post(
            self.endpoint,
            params={"key": self.api_key},
            json=self.build_request(prompt),
        )
        response.raise_for_status()
        return self.extract_text(response.json())

    def _log_retry(self, attempt: int, delay: float, error: Exception):
        logger.warning(
            f"Generation attempt {attempt}/{self.max_attempts} got "
            f"HTTP {error.response.status_code}, retrying in {delay * 1000:.0f}ms"
        )

    def generate_text(self, prompt: str) -> str:
        """
        Send a prompt and return the generated text

        Args:
            prompt: prompt text

        Returns:
            Generated text

        Raises:
            GenerationError: on a non-retryable failure or once the attempt
                budget is exhausted
        """
        attempts = 0

        def _attempt() -> str:
            nonlocal attempts
            attempts += 1
            return self._call(prompt)

        try:
            text = retry(
                _attempt,
                max_attempts=self.max_attempts,
                backoff=exponential_backoff(self.initial_delay, self.backoff_factor),
                is_retryable=is_retryable,
                sleep=self.sleep,
                on_retry=self._log_retry,
            )
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.error(f"Generation failed after {attempts} attempt(s): HTTP {status_code}")
            raise GenerationError(f"HTTP {status_code}", status_code=status_code, attempts=attempts) from e
        except httpx.HTTPError as e:
            logger.error(f"Generation request failed: {str(e)}")
            raise GenerationError(str(e), attempts=attempts) from e
        except ValueError as e:
            # Body was not JSON
            logger.error(f"Generation response could not be decoded: {str(e)}")
            raise GenerationError(f"invalid response body: {str(e)}", attempts=attempts) from e
        except GenerationError as e:
            e.attempts = attempts
            logger.error(f"Generation failed: {str(e)}")
            raise

        logger.debug(f"Generation succeeded after {attempts} attempt(s)")
        return text

    def generate(self, subject: ReportSubject) -> str:
        """
        Generate the narrative for a report subject

        Never returns fallback content; callers substitute it on GenerationError.
        """
        return self.generate_text(self.prompt_builder.build_prompt(subject))

    def close(self):
        self.client.close()
