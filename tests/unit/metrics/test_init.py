# SPDX-License-Identifier: Apache-2.0

import pretend
import pytest

from formguard.metrics import (
    DataDogMetrics,
    IMetricsService,
    NullMetrics,
    _metrics,
    includeme,
)


@pytest.mark.parametrize(
    ("settings", "metrics_class"),
    [
        ({}, NullMetrics),
        ({"metrics.backend": "formguard.metrics.DataDogMetrics"}, DataDogMetrics),
    ],
)
def test_include(monkeypatch, settings, metrics_class):
    metrics_obj = pretend.stub()
    monkeypatch.setattr(
        metrics_class, "from_settings", classmethod(lambda cls, s: metrics_obj)
    )
    registry = {}
    config = pretend.stub(
        registry=pretend.stub(settings=settings, __setitem__=registry.__setitem__),
        maybe_dotted=lambda pth: {
            NullMetrics: NullMetrics,
            "formguard.metrics.DataDogMetrics": DataDogMetrics,
        }[pth],
        register_service=pretend.call_recorder(lambda service, iface: None),
        add_request_method=pretend.call_recorder(lambda fn, name, reify: None),
    )

    includeme(config)

    assert registry["formguard.metrics"] is metrics_obj
    assert config.register_service.calls == [
        pretend.call(metrics_obj, IMetricsService)
    ]
    assert config.add_request_method.calls == [
        pretend.call(_metrics, name="metrics", reify=True)
    ]


def test_finds_service():
    service = pretend.stub()
    request = pretend.stub(find_service=pretend.call_recorder(lambda iface: service))

    assert _metrics(request) is service
    assert request.find_service.calls == [pretend.call(IMetricsService)]
