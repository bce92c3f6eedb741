# SPDX-License-Identifier: Apache-2.0

import pretend

import formguard


def test_includeme():
    config = pretend.stub(include=pretend.call_recorder(lambda name: None))

    formguard.includeme(config)

    assert config.include.calls == [
        pretend.call("pyramid_services"),
        pretend.call(".logging"),
        pretend.call(".http"),
        pretend.call(".metrics"),
        pretend.call(".config"),
        pretend.call(".rate_limiting"),
        pretend.call(".captcha"),
        pretend.call(".verification"),
    ]


def test_metadata():
    assert formguard.__title__ == "formguard"
    assert formguard.__license__ == "Apache License, Version 2.0"
