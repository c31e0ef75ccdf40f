"""
Connection factory implementation
"""
from ...core.interfaces import ConnectionFactory
from ...core.client import RemoteClient


class RemoteConnectionFactory(ConnectionFactory):
    """RemoteClient connection factory"""

    def create(self, host: str, port: int, timeout: float) -> RemoteClient:
        """
        Connect and run the SSH handshake.

        Returns:
            Connected, not yet authenticated RemoteClient

        Raises:
            ConnectionError: If connection fails
        """
        client = RemoteClient(host=host, port=port, timeout=timeout)
        client.connect()
        return client
