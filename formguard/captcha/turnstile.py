# SPDX-License-Identifier: Apache-2.0

from formguard.config import ProviderId

from .remote import CONFIGURATION_ERROR, RemoteTokenService

VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"

# https://developers.cloudflare.com/turnstile/get-started/server-side-validation/
ERROR_MESSAGES = {
    "missing-input-secret": CONFIGURATION_ERROR,
    "invalid-input-secret": CONFIGURATION_ERROR,
    "missing-input-response": "Please complete the CAPTCHA verification.",
    "invalid-input-response": "CAPTCHA verification failed. Please try again.",
    "bad-request": "Invalid request. Please try again.",
    "timeout-or-duplicate": "CAPTCHA expired. Please complete the verification again.",
    "internal-error": "An error occurred. Please try again later.",
}


class Service(RemoteTokenService):
    provider_id = ProviderId.Turnstile
    name = ProviderId.Turnstile.label
    verify_url = VERIFY_URL
    token_field = "cf-turnstile-response"
    script_src = "https://challenges.cloudflare.com/turnstile/v0/api.js"
    class_name = "cf-turnstile"
    csp = {
        "script-src": ["https://challenges.cloudflare.com"],
        "frame-src": ["https://challenges.cloudflare.com"],
    }
    error_messages = ERROR_MESSAGES

    def widget_attributes(self, form_id):
        attributes = super().widget_attributes(form_id)
        # Let the widget recover on its own from transient failures and from
        # tokens expiring while the form is being filled in.
        attributes.update(
            {
                "data-retry": "auto",
                "data-retry-interval": "1000",
                "data-refresh-expired": "auto",
            }
        )
        return attributes

    def validate_keys(self, site_key, secret_key):
        if not site_key.startswith("0x"):
            return 'Invalid site key format. Turnstile site keys start with "0x".'
        return None
