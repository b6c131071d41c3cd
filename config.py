from __future__ import annotations

# python imports:
import dataclasses
import logging
import os
import re
from typing import Any, Mapping, Optional as Opt

logger = logging.getLogger ( __name__ )

DEFAULT_PORT = 993 # imaps
DEFAULT_MAILBOX = 'INBOX'
DEFAULT_TIMEOUT = 10.0 # seconds, the whole fetch including connect
DEFAULT_CLOSE_TIMEOUT = 0.5

_r_eol = re.compile ( r'[\r\n]' )
_truthy = ( '1', 'true', 'yes', 'on' )


class ConfigError ( Exception ):
	pass


@dataclasses.dataclass ( frozen = True )
class Config:
	'''
	Connection parameters for one fetch. There are no built-in credentials:
	host, username and password must come from the caller or the environment.
	'''
	host: str
	username: str
	password: str = dataclasses.field ( repr = False )
	port: int = DEFAULT_PORT
	mailbox: str = DEFAULT_MAILBOX
	timeout: float = DEFAULT_TIMEOUT
	close_timeout: float = DEFAULT_CLOSE_TIMEOUT
	verify_tls: bool = False
	
	def __post_init__ ( self ) -> None:
		for name in ( 'host', 'username', 'password', 'mailbox' ):
			if not getattr ( self, name ):
				raise ConfigError ( f'{name} must not be empty' )
			if _r_eol.search ( getattr ( self, name ) ):
				raise ConfigError ( f'{name} must not contain CR or LF' )
		if not 0 < self.port < 65536:
			raise ConfigError ( f'invalid port {self.port!r}' )
		if self.timeout <= 0 or self.close_timeout < 0:
			raise ConfigError ( 'timeouts must be positive' )
	
	def replace ( self, **changes: Any ) -> Config:
		return dataclasses.replace ( self, **changes )
	
	@classmethod
	def from_env ( cls, environ: Opt[Mapping[str,str]] = None, **overrides: Any ) -> Config:
		'''
		reads MAIL_HOST, MAIL_PORT, MAIL_USER, MAIL_PASS, MAIL_MAILBOX,
		MAIL_TIMEOUT and MAIL_VERIFY_TLS. keyword overrides that are not None
		win over the environment.
		'''
		log = logger.getChild ( 'Config.from_env' )
		env = os.environ if environ is None else environ
	
		def required ( name: str ) -> str:
			value = env.get ( name, '' ).strip()
			if not value:
				raise ConfigError ( f'{name} is not set' )
			return value
	
		def number ( name: str, conv: Any, default: Any ) -> Any:
			value = env.get ( name, '' ).strip()
			if not value:
				return default
			try:
				return conv ( value )
			except ValueError:
				raise ConfigError ( f'{name} is not a valid {conv.__name__}' ) from None
	
		overrides = { k: v for k, v in overrides.items() if v is not None }
		values = dict (
			host = overrides.pop ( 'host', None ) or required ( 'MAIL_HOST' ),
			username = overrides.pop ( 'username', None ) or required ( 'MAIL_USER' ),
			password = overrides.pop ( 'password', None ) or required ( 'MAIL_PASS' ),
			port = number ( 'MAIL_PORT', int, DEFAULT_PORT ),
			mailbox = env.get ( 'MAIL_MAILBOX', '' ).strip() or DEFAULT_MAILBOX,
			timeout = number ( 'MAIL_TIMEOUT', float, DEFAULT_TIMEOUT ),
			verify_tls = env.get ( 'MAIL_VERIFY_TLS', '' ).strip().lower() in _truthy,
		)
		values.update ( overrides )
		self = cls ( **values )
		log.debug ( f'{self!r}' )
		return self
