from __future__ import annotations

# python imports:
import logging
import trio # pip install trio
from typing import Optional as Opt, Type

# imap_otp imports:
from base_proto import Timeout
from config import Config
import imap_async
from transport_trio import TrioTransport as Transport

logger = logging.getLogger ( __name__ )


class Client ( imap_async.Client ):
	@classmethod
	async def connect ( cls: Type[Client],
		hostname: str,
		port: int,
		tls: bool,
		verify: bool = False,
		close_timeout: float = Transport.close_timeout,
	) -> Client:
		transport = await Transport.connect ( hostname, port, tls, verify, close_timeout )
		return cls ( transport )


async def fetch_latest_code ( config: Config ) -> Opt[str]:
	'''
	Returns the first 6-digit code in the newest message of config.mailbox,
	or None if there isn't one.
	
	Raises imap_proto.AuthenticationError, MailboxSelectError, FetchError,
	base_proto.TransportError or base_proto.Timeout. The connection is
	closed before anything is returned or raised.
	'''
	log = logger.getChild ( 'fetch_latest_code' )
	try:
		with trio.fail_after ( config.timeout ):
			cli = await Client.connect (
				config.host, config.port, True, config.verify_tls, config.close_timeout,
			)
			try:
				return await cli.fetch_latest_code (
					config.username, config.password, config.mailbox,
				)
			finally:
				await cli.close()
	except trio.TooSlowError:
		log.warning ( f'gave up after {config.timeout}s' )
		raise Timeout ( f'no result within {config.timeout} seconds' ) from None


def run ( config: Config ) -> Opt[str]:
	return trio.run ( fetch_latest_code, config )
