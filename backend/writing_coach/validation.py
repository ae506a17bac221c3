from __future__ import annotations
import logging

from .errors import ConfigValidationFailed, ProviderHttpError
from .prompts import build_validation_prompt
from .providers import ProviderDispatcher
from .schemas import ProviderConfig

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Configuration test failed. Check the provider, model name and API key."


async def validate_provider_config(dispatcher: ProviderDispatcher, config: ProviderConfig) -> None:
	"""Send a tiny request with ``config``; return only if the provider answers 2xx.

	Callers must not persist ``config`` unless this returns.
	"""
	try:
		await dispatcher.dispatch(config, build_validation_prompt())
	except ProviderHttpError as err:
		message = err.provider_message() or GENERIC_FAILURE
		logger.info("provider config rejected by %s: HTTP %d", config.provider, err.status)
		raise ConfigValidationFailed(message, status=err.status_code) from err
