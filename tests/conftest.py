"""Pytest configuration for the signup gate tests."""
import os
import sys

import pytest

# Add backend directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

# Keep boto3 off any real account/endpoint while modules import
os.environ.setdefault('AWS_REGION', 'eu-west-1')
os.environ.setdefault('AWS_ACCESS_KEY_ID', 'testing')
os.environ.setdefault('AWS_SECRET_ACCESS_KEY', 'testing')


class FakeClock:
    """Millisecond clock the tests move by hand."""

    def __init__(self, start=1_000_000):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fresh_default_cache(monkeypatch):
    """Give each test an empty process-wide domain cache."""
    import domain_gate
    from domain_cache import DomainCache

    cache = DomainCache()
    monkeypatch.setattr(domain_gate, '_default_cache', cache)
    return cache
