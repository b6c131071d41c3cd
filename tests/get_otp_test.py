# python imports:
import contextlib
import io
import json
import logging
from pathlib import Path
import sys
from typing import Dict, List, Tuple
import unittest
from unittest import mock

if __name__ == '__main__': # pragma: no cover
	sys.path.append ( str ( Path ( __file__ ).parent.parent.absolute() ) )

# imap_otp imports:
import base_proto
from config import Config
import get_otp
import imap_proto as proto

logger = logging.getLogger ( __name__ )

ENV = {
	'MAIL_HOST': 'imap.example.org',
	'MAIL_USER': 'codes@example.org',
	'MAIL_PASS': 'hunter2',
}

class Tests ( unittest.TestCase ):
	def invoke ( self, result: object, argv: List[str] = [], env: Dict[str,str] = ENV ) -> Tuple[int,dict]:
		stdout = io.StringIO()
		run = mock.Mock ( side_effect = result ) if isinstance ( result, BaseException ) else mock.Mock ( return_value = result )
		with mock.patch.dict ( 'os.environ', env, clear = True ), \
			mock.patch ( 'imap_trio.run', run ), \
			contextlib.redirect_stdout ( stdout ):
			status = get_otp.main ( argv )
		self.run_mock = run
		return status, json.loads ( stdout.getvalue() )
	
	def test_found ( self ) -> None:
		self.assertEqual ( self.invoke ( '845213' ), ( get_otp.EXIT_FOUND, { 'code': '845213' } ) )
		( config, ), _ = self.run_mock.call_args
		self.assertIsInstance ( config, Config )
		self.assertEqual ( config.host, 'imap.example.org' )
	
	def test_not_found ( self ) -> None:
		self.assertEqual (
			self.invoke ( None ),
			( get_otp.EXIT_NOT_FOUND, { 'error': 'Verification code not found' } ),
		)
	
	def test_failures ( self ) -> None:
		cases = [
			( proto.AuthenticationError ( 'A1', 'NO', 'bad password for hunter2' ), get_otp.EXIT_AUTH ),
			( proto.MailboxSelectError ( 'A2', 'NO', 'no such mailbox' ), get_otp.EXIT_MAILBOX ),
			( proto.FetchError ( 'A3', 'BAD', 'nope' ), get_otp.EXIT_FETCH ),
			( base_proto.TransportError ( 'unable to connect to imap.example.org' ), get_otp.EXIT_UNREACHABLE ),
			( base_proto.Closed ( 'EOF' ), get_otp.EXIT_UNREACHABLE ),
			( base_proto.Timeout ( 'no result' ), get_otp.EXIT_TIMEOUT ),
		]
		for exc, expected in cases:
			status, body = self.invoke ( exc )
			self.assertEqual ( status, expected, f'{exc!r}' )
			self.assertEqual ( list ( body ), [ 'error' ] )
			# server text and connection details stay out of the output
			self.assertNotIn ( 'hunter2', body['error'] )
			self.assertNotIn ( 'example.org', body['error'] )
	
	def test_unexpected_failure ( self ) -> None:
		with self.assertLogs ( 'get_otp', level = 'ERROR' ):
			status, body = self.invoke ( RuntimeError ( 'trouble for hunter2' ) )
		self.assertEqual ( status, get_otp.EXIT_UNEXPECTED )
		self.assertEqual ( body, { 'error': 'Unknown error' } )
	
	def test_unencodable_host_reports_unreachable ( self ) -> None:
		stdout = io.StringIO()
		with mock.patch.dict ( 'os.environ', dict ( ENV, MAIL_HOST = 'bäd..höst' ), clear = True ), \
			contextlib.redirect_stdout ( stdout ):
			status = get_otp.main ( [] )
		self.assertEqual ( status, get_otp.EXIT_UNREACHABLE )
		self.assertEqual ( json.loads ( stdout.getvalue() ), { 'error': 'Mail server unreachable' } )
	
	def test_bad_config ( self ) -> None:
		status, body = self.invoke ( '845213', env = {} )
		self.assertEqual ( status, get_otp.EXIT_CONFIG )
		self.assertEqual ( body, { 'error': 'Invalid configuration' } )
		self.run_mock.assert_not_called()
	
	def test_options_override_environment ( self ) -> None:
		self.invoke ( '845213', [ '--host', 'mail.example.net', '--port', '1993', '--mailbox', 'Codes', '--timeout', '3', '--verify-tls' ] )
		( config, ), _ = self.run_mock.call_args
		self.assertEqual ( config.host, 'mail.example.net' )
		self.assertEqual ( config.port, 1993 )
		self.assertEqual ( config.mailbox, 'Codes' )
		self.assertEqual ( config.timeout, 3.0 )
		self.assertTrue ( config.verify_tls )
		self.assertEqual ( config.password, 'hunter2' )

if __name__ == '__main__':
	logging.basicConfig ( level = logging.DEBUG )
	unittest.main()
