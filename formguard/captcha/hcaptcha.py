# SPDX-License-Identifier: Apache-2.0

from formguard.config import ProviderId

from .remote import CONFIGURATION_ERROR, RemoteTokenService, min_length

VERIFY_URL = "https://api.hcaptcha.com/siteverify"

_EXPIRED = "CAPTCHA expired. Please complete the verification again."
_FAILED = "CAPTCHA verification failed. Please try again."

# https://docs.hcaptcha.com/#siteverify-error-codes-table
ERROR_MESSAGES = {
    "missing-input-secret": CONFIGURATION_ERROR,
    "invalid-input-secret": CONFIGURATION_ERROR,
    "sitekey-secret-mismatch": CONFIGURATION_ERROR,
    "missing-input-response": "Please complete the CAPTCHA verification.",
    "invalid-input-response": _FAILED,
    "expired-input-response": _EXPIRED,
    "already-seen-response": _EXPIRED,
    "invalid-or-already-seen-response": _EXPIRED,
    "bad-request": "Invalid request. Please try again.",
    "missing-remoteip": _FAILED,
    "invalid-remoteip": _FAILED,
}


class Service(RemoteTokenService):
    provider_id = ProviderId.HCaptcha
    name = ProviderId.HCaptcha.label
    verify_url = VERIFY_URL
    token_field = "h-captcha-response"
    script_src = "https://js.hcaptcha.com/1/api.js"
    class_name = "h-captcha"
    # https://docs.hcaptcha.com/#content-security-policy-settings
    csp = {
        "script-src": [
            "https://hcaptcha.com",
            "https://*.hcaptcha.com",
        ],
        "frame-src": [
            "https://hcaptcha.com",
            "https://*.hcaptcha.com",
        ],
        "style-src": [
            "https://hcaptcha.com",
            "https://*.hcaptcha.com",
        ],
        "connect-src": [
            "https://hcaptcha.com",
            "https://*.hcaptcha.com",
        ],
    }
    error_messages = ERROR_MESSAGES

    validate_keys = min_length(20)
