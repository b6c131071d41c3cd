#region PROLOGUE --------------------------------------------------------------
from __future__ import annotations

# python imports:
import enum
import itertools
import logging
import re
from typing import Iterator, List, NamedTuple, Optional as Opt, Tuple, Type

# imap_otp imports:
from base_proto import (
	BaseResponse, Event, SendDataEvent, Closed, ProtocolError, Protocol,
)
from util import BYTES, b2s, s2b

logger = logging.getLogger ( __name__ )

__all__ = (
	'Closed', 'ProtocolError',
	'Response', 'SuccessResponse', 'ErrorResponse',
	'AuthenticationError', 'MailboxSelectError', 'FetchError',
	'FetchCompleteEvent', 'Stage', 'Command', 'Transition', 'Session',
	'extract_code',
)

_r_eol = re.compile ( r'[\r\n]' )
_r_tagged = re.compile ( r'(\S+)\s+(\S+)(?:\s+(.*))?' )
_r_exists = re.compile ( r'\*\s+(\d+)\s+EXISTS\b', re.I )
_r_atom_specials = re.compile ( r'[\x00-\x20\x7f(){%*"\\\]]' )
_r_code = re.compile ( r'(?<!\d)(\d{6})(?!\d)', re.ASCII )


def extract_code ( text: str ) -> Opt[str]:
	'''
	first run of exactly six digits not touching another digit, or None
	'''
	m = _r_code.search ( text )
	return m.group ( 1 ) if m else None


def astring ( value: str ) -> str:
	# RFC3501 astring: bare atom when possible, quoted string otherwise
	if _r_eol.search ( value ):
		raise ValueError ( 'CR and LF are not allowed in command arguments' )
	if value and not _r_atom_specials.search ( value ):
		return value
	value = value.replace ( '\\', '\\\\' ).replace ( '"', '\\"' )
	return f'"{value}"'

#endregion
#region RESPONSES -------------------------------------------------------------

class Response ( BaseResponse ):
	def __init__ ( self, tag: str, status: str, message: str ) -> None:
		self.tag = tag
		self.status = status
		self.message = message
		super().__init__ ( f'{tag} {status} {message}'.rstrip() )
	
	@staticmethod
	def parse ( line: str ) -> Opt[Tuple[str,str,str]]:
		# -> ( tag, status, text ) or None if the line has no status word
		m = _r_tagged.match ( line.strip() )
		if not m:
			return None
		tag, status, text = m.groups()
		return tag, status, ( text or '' ).rstrip()
	
	def __repr__ ( self ) -> str:
		cls = type ( self )
		return f'{cls.__module__}.{cls.__name__}({self.tag!r}, {self.status!r}, {self.message!r})'


class SuccessResponse ( Response ):
	def is_success ( self ) -> bool:
		return True


class ErrorResponse ( Response ):
	'''
	the server answered a command with NO, BAD or some other non-OK status
	'''
	def is_success ( self ) -> bool:
		return False


class AuthenticationError ( ErrorResponse ):
	pass


class MailboxSelectError ( ErrorResponse ):
	pass


class FetchError ( ErrorResponse ):
	pass

#endregion
#region EVENTS ----------------------------------------------------------------

class FetchCompleteEvent ( Event ):
	def __init__ ( self, code: Opt[str] ) -> None:
		self.code = code
	
	def __repr__ ( self ) -> str:
		cls = type ( self )
		return f'{cls.__module__}.{cls.__name__}(code={self.code!r})'

#endregion
#region SESSION ---------------------------------------------------------------

class Stage ( enum.Enum ):
	AWAITING_GREETING = 'awaiting-greeting'
	AWAITING_AUTH = 'awaiting-auth'
	AWAITING_SELECT = 'awaiting-select'
	AWAITING_FETCH = 'awaiting-fetch'
	DONE = 'done'
	FAILED = 'failed'


class Command ( NamedTuple ):
	tag: str
	verb: str
	args: Tuple[str,...] = ()
	
	@property
	def line ( self ) -> str:
		return ' '.join ( ( self.tag, self.verb ) + self.args )
	
	@property
	def redacted ( self ) -> str:
		if self.verb == 'LOGIN':
			return ' '.join ( ( self.tag, self.verb, self.args[0], '********' ) )
		return self.line
	
	def __repr__ ( self ) -> str:
		return f'Command({self.redacted!r})'


class Transition ( NamedTuple ):
	stage: Stage
	command: Opt[Command] = None


class Session ( Protocol ):
	'''
	Client side of the LOGIN / SELECT / FETCH exchange.
	
	Feed it bytes from the server with receive() (b'' for end of stream) and
	act on the events it yields:
	
		SendDataEvent      - write these bytes to the server
		FetchCompleteEvent - finished, .code is the code or None
	
	Tagged failures are raised as AuthenticationError, MailboxSelectError or
	FetchError. on_line() is the transition function behind all of this and
	can be driven directly with decoded lines.
	'''
	_MAXLINE = 1024 * 1024 # message bodies can carry long lines
	stage: Stage = Stage.AWAITING_GREETING
	tag: Opt[str] = None # outstanding command
	exists_count: Opt[int] = None
	code: Opt[str] = None
	
	def __init__ ( self,
		username: str,
		password: str,
		mailbox: str = 'INBOX',
	) -> None:
		super().__init__()
		self.username = astring ( username )
		self.password = astring ( password )
		self.mailbox = astring ( mailbox )
		self.message_buffer: List[str] = []
		self._tags = itertools.count ( 1 )
	
	@property
	def done ( self ) -> bool:
		return self.stage in ( Stage.DONE, Stage.FAILED )
	
	def _command ( self, verb: str, *args: str ) -> Command:
		self.tag = f'A{next(self._tags)}'
		return Command ( self.tag, verb, args )
	
	def _tagged ( self, line: str ) -> Opt[Tuple[bool,str,str]]:
		# -> ( ok, status, text ) if line answers the outstanding command
		parsed = Response.parse ( line )
		if parsed is None or parsed[0] != self.tag:
			return None
		tag, status, text = parsed
		return status.upper() == 'OK', status, text
	
	def _fail ( self, errcls: Type[ErrorResponse], status: str, text: str ) -> ErrorResponse:
		assert self.tag is not None
		self.stage = Stage.FAILED
		return errcls ( self.tag, status, text )
	
	def on_line ( self, line: str ) -> Transition:
		log = logger.getChild ( 'Session.on_line' )
		stage = self.stage
	
		if stage is Stage.AWAITING_GREETING:
			if line.startswith ( '*' ):
				self.stage = Stage.AWAITING_AUTH
				return Transition ( self.stage, self._command ( 'LOGIN', self.username, self.password ) )
	
		elif stage is Stage.AWAITING_AUTH:
			if ( tagged := self._tagged ( line ) ):
				ok, status, text = tagged
				if not ok:
					raise self._fail ( AuthenticationError, status, text )
				self.stage = Stage.AWAITING_SELECT
				return Transition ( self.stage, self._command ( 'SELECT', self.mailbox ) )
	
		elif stage is Stage.AWAITING_SELECT:
			if ( m := _r_exists.match ( line ) ):
				self.exists_count = int ( m.group ( 1 ) )
				log.debug ( f'{self.exists_count=}' )
			elif ( tagged := self._tagged ( line ) ):
				ok, status, text = tagged
				if not ok:
					raise self._fail ( MailboxSelectError, status, text )
				if not self.exists_count:
					log.warning ( f'no usable message count ({self.exists_count=}), fetching message 1' )
				seq = self.exists_count or 1
				self.stage = Stage.AWAITING_FETCH
				return Transition ( self.stage, self._command ( 'FETCH', str ( seq ), 'BODY[]' ) )
	
		elif stage is Stage.AWAITING_FETCH:
			if ( tagged := self._tagged ( line ) ):
				ok, status, text = tagged
				if not ok:
					raise self._fail ( FetchError, status, text )
				self.code = extract_code ( ''.join ( f'{s}\n' for s in self.message_buffer ) )
				self.stage = Stage.DONE
				log.debug ( f'fetched {len(self.message_buffer)} lines, {self.code=}' )
			else:
				self.message_buffer.append ( line )
	
		return Transition ( self.stage )
	
	def on_eof ( self ) -> Transition:
		log = logger.getChild ( 'Session.on_eof' )
		if not self.done:
			log.info ( f'connection closed early in {self.stage.value!r}, no code' )
			self.code = None
			self.stage = Stage.DONE
		return Transition ( self.stage )
	
	def _receive_line ( self, line: BYTES ) -> Iterator[Event]:
		was_done = self.done
		transition = self.on_line ( b2s ( line, 'utf-8', 'replace' ) )
		if transition.command is not None:
			command = transition.command
			yield SendDataEvent ( s2b ( f'{command.line}\r\n', 'utf-8' ), redacted = command.redacted )
		if transition.stage is Stage.DONE and not was_done:
			yield FetchCompleteEvent ( self.code )

#endregion
