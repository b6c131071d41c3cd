from __future__ import annotations

# python imports:
from abc import ABCMeta, abstractmethod
import logging
import re
from typing import Iterator, List, Optional as Opt, Sequence as Seq, Tuple

# imap_otp imports:
from util import bytes_types, BYTES

logger = logging.getLogger ( __name__ )

_r_eol = re.compile ( b'\r\n?|\n' )


class Event ( Exception ):

	def __repr__ ( self ) -> str:
		cls = type ( self )
		return f'{cls.__module__}.{cls.__name__}()'


class Closed ( Exception ):
	def __init__ ( self, reason: str = '' ) -> None:
		super().__init__ ( reason or '(none given)' )


class ProtocolError ( Exception ):
	pass


class TransportError ( Exception ):
	'''
	the connection could not be established (tcp connect or tls handshake)
	'''


class Timeout ( Exception ):
	pass


class BaseResponse ( Exception, metaclass = ABCMeta ):
	@abstractmethod
	def is_success ( self ) -> bool:
		cls = self.__class__
		raise NotImplementedError ( f'{cls.__module__}.{cls.__name__}.is_success()' )


class SendDataEvent ( Event ):

	def __init__ ( self, *chunks: bytes, redacted: Opt[str] = None ) -> None:
		self.chunks: Seq[bytes] = chunks
		self.redacted = redacted # what to log instead of the raw chunks
	
	def __repr__ ( self ) -> str:
		cls = type ( self )
		if self.redacted is not None:
			return f'{cls.__module__}.{cls.__name__}(redacted={self.redacted!r})'
		return f'{cls.__module__}.{cls.__name__}(chunks={self.chunks!r})'

#region line framing

def split_lines ( leftover: bytes, data: BYTES ) -> Tuple[List[bytes],bytes]:
	'''
	splits leftover+data on CRLF, CR or LF
	
	returns the complete lines (terminators removed) and the new leftover.
	a CR at the very end is held back because its LF may be in the next chunk.
	'''
	buf = leftover + bytes ( data )
	lines: List[bytes] = []
	start = 0
	while ( m := _r_eol.search ( buf, start ) ):
		if m.end() == len ( buf ) and m.group() == b'\r':
			break
		lines.append ( buf[start:m.start()] )
		start = m.end()
	return lines, buf[start:]


class LineFramer:
	leftover: bytes = b''
	
	def feed ( self, data: BYTES ) -> List[bytes]:
		lines, self.leftover = split_lines ( self.leftover, data )
		return lines
	
	def close ( self ) -> List[bytes]:
		# end of stream: whatever is left is the last line
		buf, self.leftover = self.leftover, b''
		if buf.endswith ( b'\r' ):
			buf = buf[:-1]
		return [ buf ] if buf else []
	
	@property
	def pending ( self ) -> int:
		return len ( self.leftover )

#endregion line framing


class Protocol ( metaclass = ABCMeta ):
	_MAXLINE: int
	
	def __init__ ( self ) -> None:
		self.framer = LineFramer()
	
	def receive ( self, data: BYTES ) -> Iterator[Event]:
		assert isinstance ( data, bytes_types ), f'invalid {data=}'
		if not data: # EOF indicator
			for line in self.framer.close():
				yield from self._receive_line ( line )
			raise Closed ( 'EOF' )
		for line in self.framer.feed ( data ):
			yield from self._receive_line ( line )
		if self.framer.pending >= self._MAXLINE:
			raise ProtocolError ( 'maximum line length exceeded' )
	
	@abstractmethod
	def _receive_line ( self, line: bytes ) -> Iterator[Event]:
		cls = type ( self )
		raise NotImplementedError ( f'{cls.__module__}.{cls.__name__}._receive_line()' )
