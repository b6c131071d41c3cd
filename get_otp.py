'''
Print the newest 6-digit verification code from an IMAP mailbox as JSON.

Connection settings come from MAIL_HOST, MAIL_PORT, MAIL_USER, MAIL_PASS,
MAIL_MAILBOX, MAIL_TIMEOUT and MAIL_VERIFY_TLS; options override all but the
password. Exit status tells the outcomes apart (see EXIT_*).
'''
from __future__ import annotations

# python imports:
import argparse
import json
import logging
import sys
from typing import Dict, List, Optional as Opt, Tuple, Type

import packaging.version # pip install packaging

# imap_otp imports:
from base_proto import Closed, ProtocolError, Timeout, TransportError
from config import Config, ConfigError
import imap_proto as proto
import imap_trio

logger = logging.getLogger ( __name__ )

__version__ = packaging.version.parse ( '0.1.0' )

EXIT_FOUND = 0
EXIT_NOT_FOUND = 1
EXIT_CONFIG = 2
EXIT_AUTH = 3
EXIT_MAILBOX = 4
EXIT_FETCH = 5
EXIT_UNREACHABLE = 6
EXIT_TIMEOUT = 7
EXIT_UNEXPECTED = 8

# fixed texts only, nothing from the server or the config leaks out
_failures: Dict[Type[BaseException],Tuple[int,str]] = {
	ConfigError: ( EXIT_CONFIG, 'Invalid configuration' ),
	proto.AuthenticationError: ( EXIT_AUTH, 'Mailbox login failed' ),
	proto.MailboxSelectError: ( EXIT_MAILBOX, 'Mailbox not available' ),
	proto.FetchError: ( EXIT_FETCH, 'Message fetch failed' ),
	TransportError: ( EXIT_UNREACHABLE, 'Mail server unreachable' ),
	Closed: ( EXIT_UNREACHABLE, 'Mail server unreachable' ),
	ProtocolError: ( EXIT_UNREACHABLE, 'Mail server unreachable' ),
	Timeout: ( EXIT_TIMEOUT, 'Timed out' ),
}


def parse_args ( argv: Opt[List[str]] = None ) -> argparse.Namespace:
	parser = argparse.ArgumentParser ( description = __doc__.strip().splitlines()[0] )
	parser.add_argument ( '--host', help = 'IMAP server (MAIL_HOST)' )
	parser.add_argument ( '--port', type = int, help = 'IMAPS port (MAIL_PORT, default 993)' )
	parser.add_argument ( '--user', dest = 'username', help = 'login name (MAIL_USER)' )
	parser.add_argument ( '--mailbox', help = 'mailbox to read (MAIL_MAILBOX, default INBOX)' )
	parser.add_argument ( '--timeout', type = float, help = 'seconds for the whole fetch (MAIL_TIMEOUT)' )
	parser.add_argument ( '--verify-tls', dest = 'verify_tls', action = 'store_true', default = None,
		help = 'require a valid server certificate (MAIL_VERIFY_TLS)',
	)
	parser.add_argument ( '-v', '--verbose', action = 'count', default = 0 )
	parser.add_argument ( '--version', action = 'version', version = f'%(prog)s {__version__}' )
	return parser.parse_args ( argv )


def outcome ( config: Config ) -> Tuple[int,Dict[str,str]]:
	log = logger.getChild ( 'outcome' )
	try:
		code = imap_trio.run ( config )
	except tuple ( _failures ) as e:
		status, message = next ( v for k, v in _failures.items() if isinstance ( e, k ) )
		log.debug ( f'{type(e).__name__}: {e}' )
		return status, { 'error': message }
	except Exception:
		log.exception ( 'unexpected failure' )
		return EXIT_UNEXPECTED, { 'error': 'Unknown error' }
	if code is None:
		return EXIT_NOT_FOUND, { 'error': 'Verification code not found' }
	return EXIT_FOUND, { 'code': code }


def main ( argv: Opt[List[str]] = None ) -> int:
	args = parse_args ( argv )
	logging.basicConfig (
		stream = sys.stderr,
		level = logging.DEBUG if args.verbose > 1 else logging.INFO if args.verbose else logging.WARNING,
		format = '[%(name)s %(levelname)s] %(message)s',
	)
	try:
		config = Config.from_env (
			host = args.host,
			port = args.port,
			username = args.username,
			mailbox = args.mailbox,
			timeout = args.timeout,
			verify_tls = args.verify_tls,
		)
	except ConfigError as e:
		logger.error ( f'configuration: {e}' )
		status, message = _failures[ConfigError]
		body = { 'error': message }
	else:
		status, body = outcome ( config )
	print ( json.dumps ( body ) )
	return status


if __name__ == '__main__':
	sys.exit ( main() )
