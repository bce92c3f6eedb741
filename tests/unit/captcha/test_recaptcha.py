# SPDX-License-Identifier: Apache-2.0

import requests

from formguard.captcha import recaptcha
from formguard.config import ProviderId

SITE_KEY = "6LeIxAcTAAAAAJcZVRqyHh71UMIEGNQ_MXjiZKhI"
SECRET_KEY = "6LeIxAcTAAAAAGG-vFI1TnRWxMZNFuojJ4WifJWe"


def _service(service_class, metrics, **kwargs):
    return service_class(
        http=requests.Session(),
        site_key=SITE_KEY,
        secret_key=SECRET_KEY,
        metrics=metrics,
        **kwargs,
    )


class TestCheckbox:
    def test_render(self, metrics):
        widget = _service(recaptcha.Service, metrics).render("comment")

        assert widget.provider == ProviderId.RecaptchaV2
        assert widget.script_src == "https://www.google.com/recaptcha/api.js"
        assert widget.class_name == "g-recaptcha"
        assert widget.attributes == {
            "data-sitekey": SITE_KEY,
            "data-theme": "auto",
            "data-size": "normal",
        }

    def test_csp_policy(self, metrics):
        assert _service(recaptcha.Service, metrics).csp_policy == {
            "script-src": [
                "https://www.google.com/recaptcha/",
                "https://www.gstatic.com/recaptcha/",
            ],
            "frame-src": ["https://www.google.com/recaptcha/"],
            "style-src": ["'unsafe-inline'"],
        }

    def test_token_field(self, metrics):
        assert _service(recaptcha.Service, metrics).token_field == (
            "g-recaptcha-response"
        )


class TestScore:
    def test_render(self, metrics):
        widget = _service(recaptcha.ScoreService, metrics).render("login")

        assert widget.provider == ProviderId.RecaptchaV3
        assert widget.script_src == (
            f"https://www.google.com/recaptcha/api.js?render={SITE_KEY}"
        )
        assert widget.class_name == "formguard-recaptcha-v3"
        assert widget.attributes == {
            "data-sitekey": SITE_KEY,
            "data-action": "login",
            "data-token-field": "g-recaptcha-response",
        }

    def test_default_threshold(self, metrics):
        assert _service(recaptcha.ScoreService, metrics).score_threshold == 0.5

    def test_csp_policy(self, metrics):
        assert _service(recaptcha.ScoreService, metrics).csp_policy == (
            _service(recaptcha.Service, metrics).csp_policy
        )
