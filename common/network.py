"""Resolve the LAN-routable address of this machine."""

import ipaddress
import socket


def get_network_ip() -> str:
    """
    Get the address other devices on the LAN can reach this host on.

    Uses the routing table approach: connecting a UDP socket sends no
    packets but makes the kernel pick the outbound interface.

    Returns:
        IPv4 address string, or 'localhost' when only loopback is available
    """
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        s.connect(('8.8.8.8', 80))
        ip = s.getsockname()[0]
    except OSError:
        try:
            ip = socket.gethostbyname(socket.gethostname())
        except OSError:
            ip = '127.0.0.1'
    finally:
        s.close()

    if ipaddress.ip_address(ip).is_loopback:
        return 'localhost'
    return ip
