# SPDX-License-Identifier: Apache-2.0

"""
Matching of client addresses against allow and block lists.

A list is newline delimited text where every line holds one entry:

* an exact address, ``203.0.113.7`` or ``2001:db8::1``
* a CIDR block, ``10.0.0.0/8`` or ``2001:db8::/32``
* an IPv4 wildcard, ``192.168.1.*``

Anything after a ``#`` is a comment, and blank lines are ignored. Matching
never raises: a malformed address or entry simply does not match.
"""

import ipaddress
import re

__all__ = ["ClientAddressResolver", "IPMatcher", "matches", "parse_entries"]

_DECIMAL_RUN = re.compile(r"^\d+$")


def parse_entries(entries):
    if not entries:
        return []
    if isinstance(entries, str):
        entries = entries.splitlines()

    parsed = []
    for entry in entries:
        entry = entry.split("#", 1)[0].strip()
        if entry:
            parsed.append(entry)
    return parsed


def _parse_address(value):
    try:
        return ipaddress.ip_address(value.strip())
    except ValueError:
        return None


def _in_cidr(address, entry):
    subnet, _, prefix = entry.partition("/")
    subnet = _parse_address(subnet)
    if subnet is None or subnet.version != address.version:
        return False

    try:
        prefix = int(prefix)
    except ValueError:
        return False
    if not 0 <= prefix <= subnet.max_prefixlen:
        return False

    # strict=False keeps host bits in the entry from invalidating it, so
    # "10.0.0.7/24" is treated like "10.0.0.0/24".
    network = ipaddress.ip_network(f"{subnet}/{prefix}", strict=False)
    return address in network


def _matches_wildcard(ip, entry):
    ip_segments = ip.split(".")
    entry_segments = entry.split(".")
    if len(ip_segments) != len(entry_segments):
        return False

    for ip_segment, entry_segment in zip(ip_segments, entry_segments):
        if entry_segment == "*":
            if not _DECIMAL_RUN.match(ip_segment):
                return False
        elif ip_segment != entry_segment:
            return False
    return True


def _matches_entry(ip, address, entry):
    if "/" in entry:
        return _in_cidr(address, entry)
    if "*" in entry:
        return _matches_wildcard(ip, entry)
    if ip == entry:
        return True
    return _parse_address(entry) == address


def matches(ip, entries):
    """
    Return whether ``ip`` matches any of ``entries``, which is either list
    text or an iterable of already parsed entries.
    """
    if not ip or not isinstance(ip, str):
        return False

    ip = ip.strip()
    address = _parse_address(ip)
    if address is None:
        return False

    for entry in parse_entries(entries):
        if _matches_entry(ip, address, entry):
            return True
    return False


class IPMatcher:
    def __init__(self, entries):
        self.entries = parse_entries(entries)

    def __bool__(self):
        return bool(self.entries)

    def __contains__(self, ip):
        return matches(ip, self.entries)

    def __repr__(self):
        return f"IPMatcher({self.entries!r})"


def _forwarded_value(values, num_proxies):
    values = [v.strip() for v in values.split(",")]
    if len(values) >= num_proxies:
        return values[-num_proxies]


class ClientAddressResolver:
    """
    Finds the client address of a request that went through reverse proxies.

    The configured headers are tried in order, and the first one holding a
    valid address wins. ``X-Forwarded-For`` is read ``num_proxies`` entries
    from its end, since every proxy appends the address it received the
    request from. When ``trusted_proxies`` is set, the headers are only
    honoured for requests coming from one of those addresses. Otherwise, and
    whenever no header holds a valid address, the peer address is used.
    """

    def __init__(self, headers=(), trusted_proxies="", num_proxies=1):
        self.headers = tuple(headers)
        self.trusted_proxies = IPMatcher(trusted_proxies)
        self.num_proxies = max(num_proxies, 1)

    @classmethod
    def from_settings(cls, settings):
        return cls(
            settings.proxy_headers,
            trusted_proxies=settings.proxy_trusted,
            num_proxies=settings.proxy_count,
        )

    def _trusts(self, remote_addr):
        if not self.trusted_proxies:
            return True
        return remote_addr in self.trusted_proxies

    def __call__(self, request):
        remote_addr = request.remote_addr
        if not self.headers or not self._trusts(remote_addr):
            return remote_addr

        for header in self.headers:
            value = request.headers.get(header)
            if not value:
                continue
            if header.lower() == "x-forwarded-for":
                value = _forwarded_value(value, self.num_proxies)
                if value is None:
                    continue

            address = _parse_address(value)
            if address is not None:
                return str(address)

        return remote_addr
