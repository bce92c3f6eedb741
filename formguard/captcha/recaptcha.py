# SPDX-License-Identifier: Apache-2.0

from formguard.config import ProviderId

from .remote import (
    CONFIGURATION_ERROR,
    RemoteScoreService,
    RemoteTokenService,
    min_length,
)

VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"
SCRIPT_SRC = "https://www.google.com/recaptcha/api.js"

ERROR_MESSAGES = {
    "missing-input-secret": CONFIGURATION_ERROR,
    "invalid-input-secret": CONFIGURATION_ERROR,
    "missing-input-response": (
        "Verification token missing. Please refresh and try again."
    ),
    "invalid-input-response": "CAPTCHA verification failed. Please try again.",
    "bad-request": "Invalid request. Please try again.",
    "timeout-or-duplicate": "CAPTCHA expired. Please refresh and try again.",
}

CSP = {
    "script-src": [
        "https://www.google.com/recaptcha/",
        "https://www.gstatic.com/recaptcha/",
    ],
    "frame-src": [
        "https://www.google.com/recaptcha/",
    ],
    "style-src": [
        "'unsafe-inline'",
    ],
}

TOKEN_FIELD = "g-recaptcha-response"


class Service(RemoteTokenService):
    """
    The checkbox flavour of reCAPTCHA.
    """

    provider_id = ProviderId.RecaptchaV2
    name = ProviderId.RecaptchaV2.label
    verify_url = VERIFY_URL
    token_field = TOKEN_FIELD
    script_src = SCRIPT_SRC
    class_name = "g-recaptcha"
    csp = CSP
    error_messages = ERROR_MESSAGES

    validate_keys = min_length(20)

    def widget_attributes(self, form_id):
        attributes = super().widget_attributes(form_id)
        # reCAPTCHA v2 has no notion of actions.
        del attributes["data-action"]
        return attributes


class ScoreService(RemoteScoreService):
    """
    The invisible flavour of reCAPTCHA, which scores the client instead of
    challenging it. The token is obtained by the page script for the action
    named after the form, and posted in a hidden field.
    """

    provider_id = ProviderId.RecaptchaV3
    name = ProviderId.RecaptchaV3.label
    verify_url = VERIFY_URL
    token_field = TOKEN_FIELD
    class_name = "formguard-recaptcha-v3"
    csp = CSP
    error_messages = ERROR_MESSAGES

    validate_keys = min_length(20)

    @property
    def script_src(self):
        return f"{SCRIPT_SRC}?render={self.site_key}"

    def widget_attributes(self, form_id):
        return {
            "data-sitekey": self.site_key,
            "data-action": form_id,
            "data-token-field": self.token_field,
        }
