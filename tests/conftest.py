# SPDX-License-Identifier: Apache-2.0

from collections import defaultdict
from contextlib import contextmanager

import click.testing
import pretend
import pyramid.testing
import pytest

from formguard.metrics import IMetricsService
from formguard.rate_limiting import DummyRateLimiter, IRateLimiter

from .common.constants import REMOTE_ADDR


@contextmanager
def metrics_timing(*args, **kwargs):
    yield None


@pytest.fixture
def metrics():
    """
    A good-enough fake metrics fixture.
    """
    return pretend.stub(
        gauge=pretend.call_recorder(
            lambda metric, value, tags=None, sample_rate=1: None
        ),
        increment=pretend.call_recorder(
            lambda metric, value=1, tags=None, sample_rate=1: None
        ),
        timing=pretend.call_recorder(
            lambda metric, value, tags=None, sample_rate=1: None
        ),
        timed=pretend.call_recorder(
            lambda metric=None, tags=None, sample_rate=1, use_ms=None: metrics_timing(
                metric=metric, tags=tags, sample_rate=sample_rate, use_ms=use_ms
            )
        ),
    )


@pytest.fixture
def ratelimit_service():
    return DummyRateLimiter()


class _Services:
    def __init__(self):
        self._services = defaultdict(lambda: defaultdict(dict))

    def register_service(self, service_obj, iface=None, context=None, name=""):
        self._services[iface][context][name] = service_obj

    def find_service(self, iface=None, context=None, name=""):
        return self._services[iface][context][name]


@pytest.fixture
def pyramid_services(metrics, ratelimit_service):
    services = _Services()

    # Register our global services.
    services.register_service(metrics, IMetricsService, None, name="")
    services.register_service(ratelimit_service, IRateLimiter, None, name="")

    return services


@pytest.fixture
def pyramid_request(pyramid_services):
    pyramid.testing.setUp()
    dummy_request = pyramid.testing.DummyRequest()
    dummy_request.find_service = pyramid_services.find_service
    dummy_request.remote_addr = REMOTE_ADDR
    dummy_request.user = None
    dummy_request.metrics = dummy_request.find_service(IMetricsService)

    dummy_request.log = pretend.stub(
        bind=pretend.call_recorder(lambda *args, **kwargs: dummy_request.log),
        debug=pretend.call_recorder(lambda *args, **kwargs: None),
        info=pretend.call_recorder(lambda *args, **kwargs: None),
        warning=pretend.call_recorder(lambda *args, **kwargs: None),
        error=pretend.call_recorder(lambda *args, **kwargs: None),
    )

    yield dummy_request
    pyramid.testing.tearDown()


@pytest.fixture
def cli():
    runner = click.testing.CliRunner()
    with runner.isolated_filesystem():
        yield runner


class _MockRedis:
    """
    Just enough Redis for our tests.
    In-memory only, no persistence.
    Does NOT implement the full Redis API.
    """

    def __init__(self, cache=None):
        self.cache = cache
        self.ttls = {}

        if not self.cache:  # pragma: no cover
            self.cache = dict()

    def delete(self, key):
        del self.cache[key]

    def exists(self, key):
        return key in self.cache

    def expire(self, key, seconds):
        self.ttls[key] = seconds

    def from_url(self, _url):
        return self

    def get(self, key):
        return self.cache.get(key)

    def incr(self, key, amount=1):
        self.cache[key] = int(self.cache.get(key, 0)) + amount
        return self.cache[key]

    def set(self, key, value, *_args, nx=False, ex=None, **_kwargs):
        if nx and key in self.cache:
            return None
        self.cache[key] = value
        if ex is not None:
            self.ttls[key] = ex
        return True


@pytest.fixture
def mockredis():
    return _MockRedis()
