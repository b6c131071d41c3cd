# python imports:
from abc import ABCMeta, abstractmethod
import logging
import ssl
from typing import Optional as Opt

# imap_otp imports:
from util import BYTES

logger = logging.getLogger ( __name__ )


def client_ssl_context ( verify: bool ) -> ssl.SSLContext:
	ctx = ssl.create_default_context ( ssl.Purpose.SERVER_AUTH )
	if not verify:
		# the server's chain may not be checkable from here, only encrypt
		ctx.check_hostname = False
		ctx.verify_mode = ssl.CERT_NONE
	return ctx


class Transport ( metaclass = ABCMeta ):
	ssl_context: Opt[ssl.SSLContext] = None
	verify: bool = False
	
	def ssl_context_or_default_client ( self ) -> ssl.SSLContext:
		if self.ssl_context is None:
			self.ssl_context = client_ssl_context ( self.verify )
		return self.ssl_context


class AsyncTransport ( Transport ):
	@abstractmethod
	async def read ( self ) -> bytes:
		cls = type ( self )
		raise NotImplementedError ( f'{cls.__module__}.{cls.__name__}.read()' )
	
	@abstractmethod
	async def write ( self, data: BYTES ) -> None:
		cls = type ( self )
		raise NotImplementedError ( f'{cls.__module__}.{cls.__name__}.write()' )
	
	@abstractmethod
	async def starttls_client ( self, server_hostname: str ) -> None:
		cls = type ( self )
		raise NotImplementedError ( f'{cls.__module__}.{cls.__name__}.starttls_client()' )
	
	@abstractmethod
	async def close ( self ) -> None:
		cls = type ( self )
		raise NotImplementedError ( f'{cls.__module__}.{cls.__name__}.close()' )
