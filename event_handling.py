from __future__ import annotations

# python imports:
from abc import ABCMeta
import contextlib
import logging
from typing import Callable, Iterator, Type

# imap_otp imports:
from base_proto import Event, SendDataEvent, Closed, Protocol
from transport import AsyncTransport
from util import b2s

logger = logging.getLogger ( __name__ )


@contextlib.contextmanager
def close_if_oserror() -> Iterator[None]:
	try:
		yield
	except OSError as e: # includes ssl.SSLError
		raise Closed ( repr ( e ) ) from e


class AsyncEventHandler:
	transport: AsyncTransport
	
	async def on_SendDataEvent ( self, event: SendDataEvent ) -> None:
		log = logger.getChild ( 'AsyncEventHandler.on_SendDataEvent' )
		if event.redacted is not None:
			log.debug ( f'C>{event.redacted}' )
		for chunk in event.chunks:
			if event.redacted is None:
				log.debug ( f'C>{b2s(chunk,"utf-8","replace").rstrip()}' )
			with close_if_oserror():
				await self.transport.write ( chunk )
	
	async def _on_event ( self, event: Event ) -> None:
		func = getattr ( self, f'on_{type(event).__name__}' )
		await func ( event )
	
	async def close ( self ) -> None:
		await self.transport.close()


class Client ( metaclass = ABCMeta ):
	protocls: Type[Protocol]
	proto: Protocol


class AsyncClient ( AsyncEventHandler, Client ):
	def __init__ ( self, transport: AsyncTransport ) -> None:
		self.transport = transport
	
	async def _pump ( self, finished: Callable[[],bool] ) -> None:
		# feed server data to the protocol until finished() or Closed
		log = logger.getChild ( 'AsyncClient._pump' )
		while not finished():
			with close_if_oserror():
				data = await self.transport.read()
			log.debug ( f'S>{b2s(data,"utf-8","replace").rstrip()}' )
			for event in self.proto.receive ( data ):
				await self._on_event ( event )
