"""Shared HTTP transport configuration."""

import ssl

import httpx

from auctioneer_client._version import __version__
from auctioneer_client.exceptions import ConfigError

DEFAULT_TIMEOUT = 10.0
DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_MAX_CONNECTIONS = 100
DEFAULT_KEEPALIVE_EXPIRY = 30.0


def create_http_client(
    *,
    timeout: float = DEFAULT_TIMEOUT,
    verify: ssl.SSLContext | bool = True,
) -> httpx.Client:
    """Create configured HTTP client.

    The client pools connections and is safe to share between threads.

    Args:
        timeout: Request timeout in seconds.
        verify: TLS context for https requests, or True for system defaults.

    Returns:
        Configured httpx.Client instance.

    Raises:
        ConfigError: If the transport rejects the configuration.
    """
    try:
        return httpx.Client(
            timeout=httpx.Timeout(timeout, connect=min(timeout, DEFAULT_CONNECT_TIMEOUT)),
            verify=verify,
            limits=httpx.Limits(
                max_connections=DEFAULT_MAX_CONNECTIONS,
                keepalive_expiry=DEFAULT_KEEPALIVE_EXPIRY,
            ),
            headers={"User-Agent": f"auctioneer-client/{__version__}"},
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid transport: {e}") from e


def create_tls_context(ca_file: str, cert_file: str, key_file: str) -> ssl.SSLContext:
    """Load mutual-TLS client material.

    Args:
        ca_file: PEM bundle of CAs trusted to sign the server certificate.
        cert_file: PEM client certificate presented to the server.
        key_file: PEM private key for ``cert_file``.

    Returns:
        Client SSLContext requiring TLS 1.2 or newer.

    Raises:
        ConfigError: If any file is missing, unreadable or malformed.
    """
    try:
        context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH, cafile=ca_file)
        context.minimum_version = ssl.TLSVersion.TLSv1_2
        context.load_cert_chain(certfile=cert_file, keyfile=key_file)
    except (OSError, ValueError) as e:
        raise ConfigError(f"failed to load TLS material: {e}") from e
    return context
