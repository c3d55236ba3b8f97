"""Tests for the dnspython-backed resolver."""

import asyncio
from types import SimpleNamespace

import dns.exception
import dns.resolver
import pytest

from exposcope.core.config import TakeoverConfig
from exposcope.core.dns import DnsResolver, MxRecord


def answering(monkeypatch, answers=None, error=None):
    """Resolver whose dnspython backend returns fixed rdata or raises."""
    resolver = DnsResolver(nameservers=["192.0.2.53"])
    queries = []

    async def resolve(hostname, rtype):
        queries.append((hostname, rtype))
        if error is not None:
            raise error
        return answers or []

    monkeypatch.setattr(resolver._resolver, "resolve", resolve)
    return resolver, queries


class TestDnsResolver:
    """Tests for DnsResolver lookups."""

    def test_from_config(self):
        config = TakeoverConfig(dns_timeout=2.0, dns_lifetime=4.0, nameservers=["192.0.2.1", "192.0.2.2"])
        resolver = DnsResolver.from_config(config)

        assert resolver._resolver.timeout == 2.0
        assert resolver._resolver.lifetime == 4.0
        assert [str(ns) for ns in resolver._resolver.nameservers] == ["192.0.2.1", "192.0.2.2"]

    def test_cname_trailing_dot_stripped(self, monkeypatch):
        resolver, queries = answering(monkeypatch, [SimpleNamespace(target="myapp.herokuapp.com.")])

        assert asyncio.run(resolver.resolve_cname("shop.site.example")) == ["myapp.herokuapp.com"]
        assert queries == [("shop.site.example", "CNAME")]

    def test_mx_sorted_by_priority(self, monkeypatch):
        resolver, _ = answering(monkeypatch, [
            SimpleNamespace(preference=20, exchange="mx2.site.example."),
            SimpleNamespace(preference=5, exchange="mx1.site.example."),
        ])

        assert asyncio.run(resolver.resolve_mx("site.example")) == [
            MxRecord(priority=5, exchange="mx1.site.example"),
            MxRecord(priority=20, exchange="mx2.site.example"),
        ]

    def test_txt_strings_joined(self, monkeypatch):
        """Test a record split into several strings comes back whole."""
        resolver, _ = answering(monkeypatch, [
            SimpleNamespace(strings=(b"v=spf1 include:_spf.", b"site.example -all")),
            SimpleNamespace(strings=(b"verification=abc",)),
        ])

        assert asyncio.run(resolver.resolve_txt("site.example")) == [
            "v=spf1 include:_spf.site.example -all",
            "verification=abc",
        ]

    @pytest.mark.parametrize("error", [
        dns.resolver.NXDOMAIN(),
        dns.resolver.NoAnswer(),
        dns.resolver.NoNameservers(),
        dns.exception.Timeout(),
        dns.exception.DNSException("server failure"),
    ])
    def test_lookup_errors_give_empty_list(self, monkeypatch, error):
        resolver, _ = answering(monkeypatch, error=error)

        assert asyncio.run(resolver.resolve_cname("gone.site.example")) == []
        assert asyncio.run(resolver.resolve_txt("gone.site.example")) == []
        assert asyncio.run(resolver.resolve_mx("gone.site.example")) == []

    def test_invalid_nameserver_rejected(self):
        with pytest.raises(ValueError):
            DnsResolver(nameservers=["not-an-ip"])
