# SPDX-License-Identifier: Apache-2.0

"""
Verification against a remote CAPTCHA service.

The widget on the page hands the client a token, which is posted along with
the form. The token is then sent, together with our secret key, to the
service's ``siteverify`` endpoint, which answers with a JSON object like::

    {"success": true, "score": 0.9, "error-codes": []}

Vendors differ only in their endpoint, their widget, the wording of their
error codes and the format of their keys, so each of them is a small subclass
of the services below.
"""

import logging
import math

from urllib.parse import urlencode

import requests

from zope.interface import implementer

from formguard.config import DEFAULT_SCORE_THRESHOLD, DEFAULT_TIMEOUT
from formguard.config import get_protection_settings
from formguard.metrics import IMetricsService

from . import InvalidResponseError, TransportError
from .interfaces import ICaptchaService, Widget
from .results import Err, ErrorCode, Ok

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=utf-8"

CONFIGURATION_ERROR = (
    "Server configuration error. Please contact the site administrator."
)
MISSING_KEYS = "Both site key and secret key are required."


@implementer(ICaptchaService)
class RemoteTokenService:
    """
    A service which accepts a submission whenever the vendor says the token
    is valid.
    """

    provider_id = None
    name = None
    verify_url = None
    token_field = None
    script_src = None
    class_name = None
    csp = {}
    error_messages = {}

    def __init__(
        self,
        *,
        http,
        site_key,
        secret_key,
        timeout=DEFAULT_TIMEOUT,
        theme="auto",
        size="normal",
        metrics,
    ):
        self.http = http
        self.site_key = site_key
        self.secret_key = secret_key
        self.timeout = timeout
        self.theme = theme
        self.size = size
        self._metrics = metrics

    @classmethod
    def options_from_config(cls, provider):
        return {
            "site_key": provider.site_key,
            "secret_key": provider.secret_key,
            "timeout": provider.timeout,
            "theme": provider.theme,
            "size": provider.size,
        }

    @classmethod
    def create_service(cls, context, request):
        provider = get_protection_settings(request.registry).provider
        return cls(
            http=request.http,
            metrics=request.find_service(IMetricsService, context=None),
            **cls.options_from_config(provider),
        )

    @property
    def enabled(self):
        return bool(self.site_key and self.secret_key)

    @property
    def csp_policy(self):
        return {directive: list(sources) for directive, sources in self.csp.items()}

    def widget_attributes(self, form_id):
        return {
            "data-sitekey": self.site_key,
            "data-theme": self.theme,
            "data-size": self.size,
            "data-action": form_id,
        }

    def render(self, form_id):
        return Widget(
            provider=self.provider_id,
            script_src=self.script_src,
            class_name=self.class_name,
            attributes=self.widget_attributes(form_id),
        )

    def verify(self, params, remote_ip=None):
        token = (params or {}).get(self.token_field) or ""
        return self.verify_response(token, remote_ip=remote_ip)

    def verify_response(self, response, remote_ip=None):
        if not response:
            return Err(ErrorCode.MissingToken)

        data = self._siteverify(response, remote_ip)
        return self.check_response(data)

    def _siteverify(self, response, remote_ip):
        payload = {
            "secret": self.secret_key,
            "response": response,
        }
        if remote_ip is not None:
            payload["remoteip"] = remote_ip

        try:
            with self._metrics.timed(
                "formguard.captcha.siteverify",
                tags=[f"provider:{self.provider_id.value}"],
            ):
                resp = self.http.post(
                    self.verify_url,
                    urlencode(payload),
                    headers={"Content-Type": FORM_CONTENT_TYPE},
                    timeout=self.timeout,
                )
        except requests.RequestException as err:
            raise TransportError(str(err)) from err

        try:
            data = resp.json()
        except ValueError as err:
            raise InvalidResponseError(
                "Unexpected data in response body: %s" % resp.text
            ) from err

        if not isinstance(data, dict):
            raise InvalidResponseError("Unexpected data in response body: %r" % data)

        return data

    def check_response(self, data):
        if data.get("success") is not True:
            error_codes = data.get("error-codes") or []
            if not isinstance(error_codes, list):
                error_codes = [error_codes]
            logger.info(
                "%s rejected the token: %s", self.name, ", ".join(map(str, error_codes))
            )
            return Err(
                ErrorCode.VerificationFailed,
                self.error_message(error_codes),
                error_codes=error_codes,
            )

        return Ok()

    def error_message(self, error_codes):
        if not error_codes:
            return ErrorCode.VerificationFailed.label
        return self.error_messages.get(
            error_codes[0], ErrorCode.VerificationFailed.label
        )

    def validate_keys(self, site_key, secret_key):
        """
        Return a message describing what is wrong with the keys, if anything.
        """
        return None

    def test_connection(self, site_key, secret_key):
        if not site_key or not secret_key:
            return Err(ErrorCode.InvalidKeys, MISSING_KEYS)

        message = self.validate_keys(site_key, secret_key)
        if message is not None:
            return Err(ErrorCode.InvalidKeys, message)

        return Ok()


class RemoteScoreService(RemoteTokenService):
    """
    A service which additionally requires the score the vendor assigns to the
    client to reach a threshold.
    """

    def __init__(self, *, score_threshold=DEFAULT_SCORE_THRESHOLD, **kwargs):
        super().__init__(**kwargs)
        self.score_threshold = score_threshold

    @classmethod
    def options_from_config(cls, provider):
        options = super().options_from_config(provider)
        options["score_threshold"] = provider.score_threshold
        return options

    def check_response(self, data):
        result = super().check_response(data)
        if not result.ok:
            return result

        try:
            score = float(data.get("score", 0))
        except (TypeError, ValueError):
            score = 0.0
        if not math.isfinite(score):
            score = 0.0

        if score < self.score_threshold:
            logger.info(
                "%s score %.2f is below the threshold of %.2f",
                self.name,
                score,
                self.score_threshold,
            )
            return Err(ErrorCode.LowScore, score=score)

        return result


def min_length(length):
    def validate(self, site_key, secret_key):
        if len(site_key) < length or len(secret_key) < length:
            return ErrorCode.InvalidKeys.label
        return None

    return validate
