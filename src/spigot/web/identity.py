"""Client identity resolution for HTTP requests."""

import ipaddress
import logging

logger = logging.getLogger(__name__)

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


def parse_trusted_proxies(entries: list[str]) -> list[IPNetwork]:
    """Parse proxy addresses and CIDR ranges.

    Parameters
    ----------
    entries : list[str]
        IP addresses (``"10.0.0.1"``) or networks (``"10.0.0.0/8"``).

    Returns
    -------
    list[IPNetwork]
        Parsed networks; single addresses become /32 or /128 networks.

    Raises
    ------
    ValueError
        If an entry is neither an address nor a network.
    """
    networks: list[IPNetwork] = []
    for entry in entries:
        text = entry.strip()
        if not text:
            continue
        try:
            networks.append(ipaddress.ip_network(text, strict=False))
        except ValueError as e:
            raise ValueError(f"Invalid trusted proxy entry: {entry!r}") from e
    return networks


def _is_trusted(peer: str | None, trusted: list[IPNetwork]) -> bool:
    if not peer or not trusted:
        return False
    try:
        ip = ipaddress.ip_address(peer)
    except ValueError:
        return False
    return any(ip in network for network in trusted)


def resolve_client_identity(
    peer: str | None,
    header_value: str | None,
    trusted: list[IPNetwork],
) -> str:
    """Pick the rate-limit identity of an HTTP client.

    The forwarded header is honoured only when the direct peer is a trusted
    proxy; anyone else could set it to dodge the cooldown.

    Parameters
    ----------
    peer : str | None
        IP address of the direct TCP peer.
    header_value : str | None
        Value of the configured real-IP header, if present.
    trusted : list[IPNetwork]
        Trusted proxy networks.

    Returns
    -------
    str
        The client IP address, or ``"unknown"`` when none is available.
    """
    if header_value and _is_trusted(peer, trusted):
        # X-Forwarded-For style lists put the original client first.
        candidate = header_value.split(",")[0].strip()
        if candidate:
            return candidate
    if header_value and not _is_trusted(peer, trusted):
        logger.debug(
            "Ignoring client IP header from untrusted peer",
            extra={"peer": peer},
        )
    return peer or "unknown"
