# SPDX-License-Identifier: Apache-2.0

import pretend

from formguard.captcha import ICaptchaService
from formguard.cli import honeypot


def test_rotate_field(monkeypatch, cli):
    service = pretend.stub(
        regenerate_field_name=pretend.call_recorder(lambda: "abcdef123")
    )
    find_service = pretend.call_recorder(lambda config, iface, name: service)
    monkeypatch.setattr(honeypot, "find_service", find_service)
    config = pretend.stub()

    result = cli.invoke(honeypot.rotate_field, obj=config)

    assert result.exit_code == 0
    assert result.output == "New honeypot field name: abcdef123\n"
    assert service.regenerate_field_name.calls == [pretend.call()]
    assert find_service.calls == [
        pretend.call(config, ICaptchaService, name="honeypot")
    ]


def test_stats(monkeypatch, cli):
    service = pretend.stub(spam_stats=lambda: {"today": 3, "total": 42})
    monkeypatch.setattr(
        honeypot, "find_service", lambda config, iface, name: service
    )

    result = cli.invoke(honeypot.stats, obj=pretend.stub())

    assert result.exit_code == 0
    assert result.output == "Rejected today: 3\nRejected in total: 42\n"
