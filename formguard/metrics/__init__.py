# SPDX-License-Identifier: Apache-2.0

from pyramid.request import Request

from formguard.metrics.interfaces import IMetricsService
from formguard.metrics.services import DataDogMetrics, NullMetrics

__all__ = ["IMetricsService", "NullMetrics", "DataDogMetrics", "includeme"]


def _metrics(request: Request) -> IMetricsService:
    return request.find_service(IMetricsService)


def includeme(config):
    # The rate limiter is built once at configuration time and needs to emit
    # metrics outside of any request, so a single metrics client is shared.
    metrics_class = config.maybe_dotted(
        config.registry.settings.get("metrics.backend", NullMetrics)
    )
    metrics = metrics_class.from_settings(config.registry.settings)
    config.registry["formguard.metrics"] = metrics
    config.register_service(metrics, IMetricsService)

    # Add the metrics service to the request.
    config.add_request_method(_metrics, name="metrics", reify=True)
