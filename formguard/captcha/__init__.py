# SPDX-License-Identifier: Apache-2.0

from formguard.config import ProviderId, get_protection_settings

from .interfaces import ICaptchaService, Widget
from .results import Err, ErrorCode, Ok, VerificationResult

__all__ = [
    "CaptchaError",
    "Err",
    "ErrorCode",
    "ICaptchaService",
    "InvalidResponseError",
    "Ok",
    "PROVIDERS",
    "TransportError",
    "VerificationResult",
    "Widget",
    "includeme",
]


class CaptchaError(ValueError):
    code = "captcha_error"


class TransportError(CaptchaError):
    """
    The verification endpoint could not be reached, or did not answer in time.
    """

    code = "service_unavailable"


class InvalidResponseError(TransportError):
    """
    The verification endpoint answered with something that is not a JSON
    object.
    """

    code = "invalid_response"


PROVIDERS = {
    ProviderId.Turnstile: "formguard.captcha.turnstile.Service",
    ProviderId.RecaptchaV2: "formguard.captcha.recaptcha.Service",
    ProviderId.RecaptchaV3: "formguard.captcha.recaptcha.ScoreService",
    ProviderId.HCaptcha: "formguard.captcha.hcaptcha.Service",
    ProviderId.Honeypot: "formguard.captcha.honeypot.Service",
}


def includeme(config):
    provider = get_protection_settings(config.registry).provider

    # Register the configured Captcha service
    if provider.id is not None:
        captcha_class = config.maybe_dotted(PROVIDERS[provider.id])
        config.register_service_factory(
            captcha_class.create_service,
            ICaptchaService,
            # Service requires a name for lookup in templates,
            # where the Interface object is not available.
            name="captcha",
        )

    # The honeypot is always available, both as a fallback when the remote
    # service is down and when no provider is configured at all.
    honeypot_class = config.maybe_dotted(PROVIDERS[ProviderId.Honeypot])
    config.register_service_factory(
        honeypot_class.create_service, ICaptchaService, name="honeypot"
    )
