# SPDX-License-Identifier: Apache-2.0

import requests

from formguard.captcha import hcaptcha
from formguard.config import ProviderId

_HCAPTCHA = ["https://hcaptcha.com", "https://*.hcaptcha.com"]


def _service(metrics):
    return hcaptcha.Service(
        http=requests.Session(),
        site_key="10000000-ffff-ffff-ffff-000000000001",
        secret_key="0x0000000000000000000000000000000000000000",
        metrics=metrics,
    )


def test_render(metrics):
    widget = _service(metrics).render("contact")

    assert widget.provider == ProviderId.HCaptcha
    assert widget.script_src == "https://js.hcaptcha.com/1/api.js"
    assert widget.class_name == "h-captcha"
    assert widget.attributes == {
        "data-sitekey": "10000000-ffff-ffff-ffff-000000000001",
        "data-theme": "auto",
        "data-size": "normal",
        "data-action": "contact",
    }


def test_csp_policy(metrics):
    assert _service(metrics).csp_policy == {
        "script-src": _HCAPTCHA,
        "frame-src": _HCAPTCHA,
        "style-src": _HCAPTCHA,
        "connect-src": _HCAPTCHA,
    }


def test_test_connection(metrics):
    service = _service(metrics)

    assert service.test_connection(
        "10000000-ffff-ffff-ffff-000000000001",
        "0x0000000000000000000000000000000000000000",
    ).ok


def test_mismatched_keys_are_a_configuration_error():
    assert hcaptcha.ERROR_MESSAGES["sitekey-secret-mismatch"] == (
        "Server configuration error. Please contact the site administrator."
    )
