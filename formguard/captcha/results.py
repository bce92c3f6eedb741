# SPDX-License-Identifier: Apache-2.0

from dataclasses import dataclass, field

from formguard.utils.enum import StrLabelEnum

_EXPIRED = "Security verification expired. Please refresh and try again."
_FAILED = "Security verification failed. Please try again."
_SPAM = "Spam detected. Please try again."


class ErrorCode(StrLabelEnum):
    # Name = "value", "Default message"
    MissingToken = "missing_token", "Please complete the CAPTCHA verification."
    VerificationFailed = (
        "verification_failed",
        "CAPTCHA verification failed. Please try again.",
    )
    LowScore = "low_score", "Verification failed. Please try again."
    InvalidKeys = "invalid_keys", "Invalid key format. Please check your API keys."

    NoJs = "no_js", _FAILED
    TrapFilled = "trap_filled", _SPAM
    InvalidTime = "invalid_time", _EXPIRED
    InvalidNonce = "invalid_nonce", _EXPIRED
    TooFast = "too_fast", "Form submitted too quickly. Please take your time."
    TooOld = "too_old", _EXPIRED
    JsFailed = "js_failed", _FAILED
    HoneypotFilled = "honeypot_filled", _SPAM
    InvalidField = "invalid_field", _FAILED
    InvalidNonceHoneypot = "invalid_nonce_honeypot", _EXPIRED

    RateLimited = "rate_limited", "Too many failed attempts. Please try again later."
    IpBlocked = (
        "ip_blocked",
        "Your IP address has been blocked. Please contact the site administrator.",
    )
    ServiceUnavailable = (
        "service_unavailable",
        "Verification is temporarily unavailable. Please try again later.",
    )


@dataclass(frozen=True)
class VerificationResult:
    """
    The outcome of a verification. A result without a code is a success.
    """

    code: ErrorCode | None = None
    message: str | None = None
    details: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.code is None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls) -> "VerificationResult":
        return cls()

    @classmethod
    def failure(cls, code, message=None, **details) -> "VerificationResult":
        code = ErrorCode(code)
        return cls(code=code, message=message or code.label, details=details)


Ok = VerificationResult.success


def Err(code, message=None, **details):
    return VerificationResult.failure(code, message, **details)
