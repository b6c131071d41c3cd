import trustme # pip install trustme
import ssl

class ServerOnly:
	'''
	throwaway CA + server certificate for tls tests
	
	client_context() trusts the CA, anything else built with
	ssl.create_default_context() does not.
	'''
	def __init__ ( self, *,
		server_hostname: str, # ex: 'test-host.example.org'
	) -> None:
		self.server_hostname = server_hostname
		self.ca = trustme.CA()
		self.server_cert = self.ca.issue_cert ( self.server_hostname )
	
	def server_context ( self ) -> ssl.SSLContext:
		ctx = ssl.create_default_context ( ssl.Purpose.CLIENT_AUTH )
		self.server_cert.configure_cert ( ctx )
		return ctx
	
	def client_context ( self ) -> ssl.SSLContext:
		ctx = ssl.create_default_context ( ssl.Purpose.SERVER_AUTH )
		self.ca.configure_trust ( ctx )
		return ctx
