from __future__ import annotations
from typing import AsyncIterator

from .providers import ProviderDispatcher


async def get_dispatcher() -> AsyncIterator[ProviderDispatcher]:
	dispatcher = ProviderDispatcher()
	try:
		yield dispatcher
	finally:
		await dispatcher.aclose()
