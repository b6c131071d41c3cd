from __future__ import annotations

# python imports:
import logging
import trio # pip install trio
from typing import Optional as Opt, Type

# imap_otp imports:
from base_proto import Closed, TransportError
from transport import AsyncTransport
from util import BYTES

logger = logging.getLogger ( __name__ )


class TrioTransport ( AsyncTransport ):
	happy_eyeballs_delay: float = 0.25 # this is the same as trio's default circa version 0.16.0
	close_timeout: float = 0.5
	closed: bool = False
	stream: trio.abc.Stream
	
	def __init__ ( self, stream: trio.abc.Stream ) -> None:
		self.stream = stream
	
	@classmethod
	async def connect ( cls: Type[TrioTransport],
		hostname: str,
		port: int,
		tls: bool,
		verify: bool = False,
		close_timeout: Opt[float] = None,
	) -> TrioTransport:
		log = logger.getChild ( 'TrioTransport.connect' )
		try:
			stream = await trio.open_tcp_stream ( hostname, port,
				happy_eyeballs_delay = cls.happy_eyeballs_delay,
			)
		except ( OSError, UnicodeError ) as e: # bad hostnames fail idna encoding
			raise TransportError ( f'unable to connect: {getattr(e,"strerror",None) or type(e).__name__}' ) from e
		self = cls ( stream )
		self.verify = verify
		if close_timeout is not None:
			self.close_timeout = close_timeout
		if tls:
			try:
				await self.starttls_client ( hostname )
			except BaseException:
				await self.close()
				raise
		log.debug ( f'connected {tls=} {verify=}' )
		return self
	
	async def read ( self ) -> bytes:
		#log = logger.getChild ( 'TrioTransport.read' )
		try:
			return await self.stream.receive_some()
		except ( trio.BrokenResourceError, trio.ClosedResourceError ) as e:
			raise Closed ( repr ( e ) ) from e
	
	async def write ( self, data: BYTES ) -> None:
		#log = logger.getChild ( 'TrioTransport.write' )
		try:
			await self.stream.send_all ( data )
		except ( trio.BrokenResourceError, trio.ClosedResourceError ) as e:
			raise Closed ( repr ( e ) ) from e
	
	async def starttls_client ( self, server_hostname: str ) -> None:
		context = self.ssl_context_or_default_client()
	
		self.stream = trio.SSLStream (
			self.stream,
			ssl_context = context,
			server_hostname = server_hostname,
		)
		# handshake now so a bad peer shows up as a connect failure
		try:
			await self.stream.do_handshake()
		except trio.BrokenResourceError as e:
			raise TransportError ( f'tls handshake failed: {e.__cause__!r}' ) from e
	
	async def close ( self ) -> None:
		log = logger.getChild ( 'TrioTransport.close' )
		if self.closed:
			return
		self.closed = True
		# aclose() closes the stream even when cancelled or timed out
		with trio.move_on_after ( self.close_timeout ):
			try:
				await self.stream.aclose()
			except ( trio.BrokenResourceError, trio.ClosedResourceError ) as e:
				log.debug ( f'peer was already gone: {e!r}' )
