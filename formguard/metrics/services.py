# SPDX-License-Identifier: Apache-2.0

from datadog import DogStatsd
from zope.interface import implementer

from formguard.metrics.interfaces import IMetricsService


class _NullTimingDecoratorContextManager:
    def __call__(self, fn):
        return fn

    def __enter__(self):
        return self

    def __exit__(self, *args):
        pass


@implementer(IMetricsService)
class NullMetrics:
    @classmethod
    def from_settings(cls, settings):
        return cls()

    def increment(self, metric, value=1, tags=None, sample_rate=1):
        pass

    def gauge(self, metric, value, tags=None, sample_rate=1):
        pass

    def timing(self, metric, value, tags=None, sample_rate=1):
        pass

    def timed(self, metric=None, tags=None, sample_rate=1, use_ms=None):
        return _NullTimingDecoratorContextManager()


@implementer(IMetricsService)
class DataDogMetrics:
    def __init__(self, datadog):
        self._datadog = datadog

    @classmethod
    def from_settings(cls, settings):
        return cls(
            DogStatsd(
                host=settings.get("metrics.host", "127.0.0.1"),
                port=int(settings.get("metrics.port", 8125)),
                namespace=settings.get("metrics.namespace"),
                use_ms=True,
            )
        )

    def increment(self, metric, value=1, tags=None, sample_rate=1):
        self._datadog.increment(metric, value, tags=tags, sample_rate=sample_rate)

    def gauge(self, metric, value, tags=None, sample_rate=1):
        self._datadog.gauge(metric, value, tags=tags, sample_rate=sample_rate)

    def timing(self, metric, value, tags=None, sample_rate=1):
        self._datadog.timing(metric, value, tags=tags, sample_rate=sample_rate)

    def timed(self, metric=None, tags=None, sample_rate=1, use_ms=None):
        return self._datadog.timed(
            metric, tags=tags, sample_rate=sample_rate, use_ms=use_ms
        )
