import logging
from typing import Optional
from openai import (
    OpenAI,
    APIStatusError,
    AuthenticationError,
    PermissionDeniedError,
    RateLimitError,
    OpenAIError,
)

from app.config import settings
from app.domain.errors import (
    InvalidCredentialError,
    ProviderRateLimitError,
    ProviderQuotaError,
    EmptyGenerationError,
    GenerationFailedError,
)

logger = logging.getLogger(__name__)


def _is_quota_error(error: Exception) -> bool:
    """Billing/quota failures: HTTP 402, or a 429 tagged insufficient_quota."""
    if isinstance(error, APIStatusError) and error.status_code == 402:
        return True
    return getattr(error, "code", None) == "insufficient_quota"


class LLMService:
    """
    Text generation through the OpenAI SDK.

    By default the client targets Cohere's OpenAI-compatible endpoint, so the
    key is the user's own Cohere key. One attempt per call, SDK retries off.
    """

    def __init__(
        self,
        api_key: str,
        model: str = None,
        base_url: str = None,
        timeout: float = None,
        client: Optional[OpenAI] = None
    ):
        """
        Args:
            api_key: Provider API key
            model: Chat model name
            base_url: OpenAI-compatible endpoint
            timeout: Request timeout in seconds
            client: Pre-built client (tests)
        """
        self.model = model or settings.LLM_MODEL
        self.client = client or OpenAI(
            api_key=api_key,
            base_url=base_url or settings.LLM_BASE_URL,
            timeout=timeout or settings.LLM_TIMEOUT_SECONDS,
            max_retries=0,
        )
        logger.info(f"[LLMService] initialized - model: {self.model}")

    def generate_text(self, prompt: str, temperature: float = None) -> str:
        """
        Single non-streaming completion returning plain text.

        Raises:
            InvalidCredentialError: key rejected
            ProviderRateLimitError: provider throttled the request
            ProviderQuotaError: billing/quota exhausted
            EmptyGenerationError: no text in the answer
            GenerationFailedError: anything else
        """
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=settings.LLM_TEMPERATURE if temperature is None else temperature,
                n=1,
                stream=False,
            )
        except (AuthenticationError, PermissionDeniedError) as e:
            logger.warning(f"[LLMService] provider rejected the API key: {e.__class__.__name__}")
            raise InvalidCredentialError() from e
        except RateLimitError as e:
            if _is_quota_error(e):
                logger.warning("[LLMService] provider quota exhausted")
                raise ProviderQuotaError() from e
            logger.warning("[LLMService] provider rate limit hit")
            raise ProviderRateLimitError() from e
        except APIStatusError as e:
            if _is_quota_error(e):
                logger.warning("[LLMService] provider quota exhausted")
                raise ProviderQuotaError() from e
            logger.error(f"[LLMService] provider error {e.status_code}: {e.message}")
            raise GenerationFailedError() from e
        except OpenAIError as e:
            logger.error(f"[LLMService] generation error: {str(e)}")
            raise GenerationFailedError() from e

        text = None
        choices = getattr(response, "choices", None)
        message = getattr(choices[0], "message", None) if choices else None
        if message is not None:
            text = (getattr(message, "content", None) or "").strip()
        if not text:
            raise EmptyGenerationError()

        logger.info(f"[LLMService] generated {len(text.split())} words")
        return text
