"""
Helpers for building the server URLs shown to operators.

Operators are never shown ``localhost``, ``127.0.0.1``, ``0.0.0.0``,
``::`` or ``::1``: those are useless when the credentials file is read
from another machine.
"""

import ipaddress
import logging
import socket
from typing import Optional


logger = logging.getLogger(__name__)

UNSPECIFIED_HOSTS = {"", "0.0.0.0", "::", "localhost", "127.0.0.1", "::1"}


def format_url(host: str, port: str, path: str = "") -> str:
    """Format ``http://host:port/path`` adding brackets for IPv6 hosts."""
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    return f"http://{host}:{port}{path}"


def _is_external(address: str) -> bool:
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    return not (ip.is_loopback or ip.is_unspecified)


def get_outbound_ip() -> Optional[str]:
    """Return the preferred outbound IP of this machine, IPv4 first.

    Connecting a UDP socket sends no packets; it only asks the kernel
    which local address would be used for the route.
    """
    for family, target in ((socket.AF_INET, ("8.8.8.8", 80)), (socket.AF_INET6, ("2001:4860:4860::8888", 80))):
        try:
            with socket.socket(family, socket.SOCK_DGRAM) as sock:
                sock.connect(target)
                address = sock.getsockname()[0]
        except OSError:
            continue
        if _is_external(address):
            return address
    return None


def get_accessible_url(address: str, port: str, path: str = "") -> str:
    """Return the most useful URL for reaching the server.

    Priority: an explicit non-wildcard listen address, a resolvable
    hostname, the outbound IP, the bare hostname, and finally a
    ``<your-host>`` placeholder.
    """
    if address not in UNSPECIFIED_HOSTS:
        return format_url(address, port, path)

    hostname = socket.gethostname()
    if hostname and hostname != "localhost":
        try:
            addresses = {info[4][0] for info in socket.getaddrinfo(hostname, None)}
        except OSError:
            addresses = set()
        if any(_is_external(addr) for addr in addresses):
            return format_url(hostname, port, path)

    outbound = get_outbound_ip()
    if outbound:
        return format_url(outbound, port, path)

    if hostname and hostname != "localhost":
        return format_url(hostname, port, path)

    logger.debug("No accessible address found, using placeholder host")
    return f"http://<your-host>:{port}{path}"
