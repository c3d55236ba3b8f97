"""DNS lookups through dnspython's asyncio resolver."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import dns.asyncresolver
import dns.exception
import dns.resolver

from exposcope.core.config import TakeoverConfig
from exposcope.core.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MxRecord:
    """Mail exchanger record."""
    priority: int
    exchange: str


class DnsResolver:
    """
    Minimal async DNS client.

    Lookup failures of any kind (NXDOMAIN, no answer, timeouts) are logged
    at debug level and reported as an empty list.
    """

    def __init__(
        self,
        timeout: float = 5.0,
        lifetime: float = 10.0,
        nameservers: Optional[Sequence[str]] = None,
    ):
        """
        Initialize DNS resolver.

        Args:
            timeout: Per-server query timeout in seconds
            lifetime: Total time budget for one lookup
            nameservers: Custom nameservers, system configuration when empty
        """
        # Explicit nameservers skip reading the system resolver configuration
        self._resolver = dns.asyncresolver.Resolver(configure=not nameservers)
        self._resolver.timeout = timeout
        self._resolver.lifetime = lifetime
        if nameservers:
            self._resolver.nameservers = list(nameservers)

    @classmethod
    def from_config(cls, config: TakeoverConfig) -> "DnsResolver":
        return cls(
            timeout=config.dns_timeout,
            lifetime=config.dns_lifetime,
            nameservers=config.nameservers,
        )

    async def _query(self, hostname: str, rtype: str) -> list:
        try:
            answers = await self._resolver.resolve(hostname, rtype)
        except (
            dns.resolver.NXDOMAIN,
            dns.resolver.NoAnswer,
            dns.resolver.NoNameservers,
            dns.exception.Timeout,
        ) as e:
            logger.debug("DNS lookup returned nothing", host=hostname, type=rtype, reason=e.__class__.__name__)
            return []
        except dns.exception.DNSException as e:
            logger.debug("DNS lookup failed", host=hostname, type=rtype, error=str(e))
            return []
        return list(answers)

    async def resolve_cname(self, hostname: str) -> list[str]:
        """CNAME targets of a hostname, without the trailing dot."""
        return [str(rdata.target).rstrip(".") for rdata in await self._query(hostname, "CNAME")]

    async def resolve_txt(self, hostname: str) -> list[str]:
        """TXT records, each record's strings joined together."""
        records = []
        for rdata in await self._query(hostname, "TXT"):
            records.append("".join(
                s.decode("utf-8", errors="replace") if isinstance(s, bytes) else str(s)
                for s in rdata.strings
            ))
        return records

    async def resolve_mx(self, hostname: str) -> list[MxRecord]:
        """MX records sorted by priority."""
        records = [
            MxRecord(priority=rdata.preference, exchange=str(rdata.exchange).rstrip("."))
            for rdata in await self._query(hostname, "MX")
        ]
        return sorted(records, key=lambda r: r.priority)
