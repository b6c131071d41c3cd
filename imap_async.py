# system imports:
import logging
from typing import Optional as Opt

# imap_otp imports:
from event_handling import AsyncClient
import imap_proto as proto

logger = logging.getLogger ( __name__ )


class Client ( AsyncClient ):
	protocls = proto.Session
	proto: proto.Session
	complete: Opt[proto.FetchCompleteEvent] = None
	
	async def on_FetchCompleteEvent ( self, event: proto.FetchCompleteEvent ) -> None:
		self.complete = event
	
	async def fetch_latest_code ( self,
		username: str,
		password: str,
		mailbox: str = 'INBOX',
	) -> Opt[str]:
		'''
		log in, select the mailbox and scan its newest message for a code
	
		returns None if there is no code or the server hangs up first.
		raises proto.AuthenticationError, MailboxSelectError or FetchError.
		does not close the transport.
		'''
		log = logger.getChild ( 'Client.fetch_latest_code' )
		self.proto = self.protocls ( username, password, mailbox )
		self.complete = None
		try:
			await self._pump ( lambda: self.complete is not None )
		except proto.Closed as e:
			if self.complete is None:
				log.warning ( f'connection closed before the fetch completed: {e.args[0]!r}' )
				self.proto.on_eof()
				return None
		assert self.complete is not None
		log.debug ( f'{self.complete=}' )
		return self.complete.code
