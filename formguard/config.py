# SPDX-License-Identifier: Apache-2.0

import enum
import os

from dataclasses import dataclass, field

from pyramid.config import Configurator
from pyramid.settings import asbool, aslist

from formguard.utils.enum import StrLabelEnum

DEFAULT_SCORE_THRESHOLD = 0.5
DEFAULT_TIMEOUT = 30
DEFAULT_HONEYPOT_MIN_TIME = 3
DEFAULT_RATELIMIT_REQUESTS = 5
DEFAULT_RATELIMIT_LOCKOUT = 15
DEFAULT_RATELIMIT_WINDOW = 60

DEFAULT_EXEMPT_FORMS = ("wc_checkout_classic", "wc_checkout_block")


class ConfigurationError(ValueError):
    pass


class Environment(str, enum.Enum):
    production = "production"
    development = "development"


class ProviderId(StrLabelEnum):
    # Name = "value", "Label"
    Turnstile = "turnstile", "Cloudflare Turnstile"
    RecaptchaV2 = "recaptcha_v2", "Google reCAPTCHA v2"
    RecaptchaV3 = "recaptcha_v3", "Google reCAPTCHA v3"
    HCaptcha = "hcaptcha", "hCaptcha"
    Honeypot = "honeypot", "Self-Hosted Honeypot"


class FailsafeMode(StrLabelEnum):
    Block = "block", "Block the submission"
    Honeypot = "honeypot", "Fall back to the honeypot"
    Allow = "allow", "Allow the submission"


def maybe_set(settings, name, envvar, coercer=None, default=None):
    if envvar in os.environ:
        value = os.environ[envvar]
        if coercer is not None:
            value = coercer(value)
        settings.setdefault(name, value)
    elif default is not None:
        settings.setdefault(name, default)


def as_set(value):
    """
    Turn a setting that may be a list, or a comma and/or whitespace separated
    string, into a frozenset of non-empty strings.
    """
    if value is None:
        return frozenset()
    if isinstance(value, str):
        value = value.replace(",", " ")
    return frozenset(str(v).strip() for v in aslist(value, flatten=True) if v)


def as_tuple(value):
    # Like as_set, but keeps the order and the first of any duplicates.
    if value is None:
        return ()
    if isinstance(value, str):
        value = value.replace(",", " ")
    values = (str(v).strip() for v in aslist(value, flatten=True) if v)
    return tuple(dict.fromkeys(values))


def as_lines(value):
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return "\n".join(str(v) for v in value)


def _positive(settings, name, default):
    value = settings.get(name)
    if value in (None, ""):
        return default
    try:
        value = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be an integer, not {value!r}") from exc
    return value if value > 0 else default


def _enum(settings, name, enum_cls, default):
    value = settings.get(name) or default
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise ConfigurationError(
            f"{name} must be one of {', '.join(enum_cls.values())}, not {value!r}"
        ) from exc


@dataclass(frozen=True)
class ProviderConfig:
    """
    The provider related part of the settings, snapshotted once when the
    application is configured.
    """

    id: ProviderId | None = None
    site_key: str = ""
    secret_key: str = ""
    score_threshold: float = DEFAULT_SCORE_THRESHOLD
    theme: str = "auto"
    size: str = "normal"
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_settings(cls, settings):
        threshold = settings.get("captcha.score_threshold", DEFAULT_SCORE_THRESHOLD)
        try:
            threshold = float(threshold)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                f"captcha.score_threshold must be a number, not {threshold!r}"
            ) from exc
        if not 0.0 <= threshold <= 1.0:
            raise ConfigurationError(
                f"captcha.score_threshold must be between 0 and 1, not {threshold}"
            )

        timeout = settings.get("captcha.timeout", DEFAULT_TIMEOUT)
        try:
            timeout = float(timeout)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                f"captcha.timeout must be a number, not {timeout!r}"
            ) from exc

        return cls(
            id=_enum(settings, "captcha.provider", ProviderId, None),
            site_key=settings.get("captcha.site_key") or "",
            secret_key=settings.get("captcha.secret_key") or "",
            score_threshold=threshold,
            theme=settings.get("captcha.theme") or "auto",
            size=settings.get("captcha.size") or "normal",
            timeout=timeout if timeout > 0 else DEFAULT_TIMEOUT,
        )


@dataclass(frozen=True)
class ProtectionSettings:
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    forms: frozenset[str] = frozenset()
    failsafe_mode: FailsafeMode = FailsafeMode.Honeypot
    debug_logging: bool = False

    whitelist_logged_in: bool = False
    whitelist_roles: frozenset[str] = frozenset()
    whitelist_ips: str = ""
    blocklist_ips: str = ""

    honeypot_enabled: bool = False
    honeypot_min_time: int = DEFAULT_HONEYPOT_MIN_TIME

    ratelimit_enabled: bool = False
    ratelimit_requests: int = DEFAULT_RATELIMIT_REQUESTS
    ratelimit_lockout: int = DEFAULT_RATELIMIT_LOCKOUT
    ratelimit_window: int = DEFAULT_RATELIMIT_WINDOW

    exempt_payment_methods: frozenset[str] = frozenset()
    exempt_forms: frozenset[str] = frozenset(DEFAULT_EXEMPT_FORMS)

    # Client address resolution behind reverse proxies.
    proxy_headers: tuple[str, ...] = ()
    proxy_trusted: str = ""
    proxy_count: int = 1

    @classmethod
    def from_settings(cls, settings):
        min_time = settings.get("honeypot.min_time", DEFAULT_HONEYPOT_MIN_TIME)
        try:
            min_time = int(min_time)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                f"honeypot.min_time must be an integer, not {min_time!r}"
            ) from exc
        if min_time < 0:
            raise ConfigurationError("honeypot.min_time must not be negative")

        provider = ProviderConfig.from_settings(settings)
        honeypot_enabled = asbool(settings.get("honeypot.enabled", False))
        if provider.id == ProviderId.Honeypot or honeypot_enabled:
            missing = [
                name
                for name in ("honeypot.url", "honeypot.secret")
                if not settings.get(name)
            ]
            if missing:
                raise ConfigurationError(
                    f"{' and '.join(missing)} must be set to use the honeypot"
                )

        exempt_forms = settings.get("exemptions.forms")
        return cls(
            provider=provider,
            forms=as_set(settings.get("captcha.forms")),
            failsafe_mode=_enum(
                settings, "captcha.failsafe_mode", FailsafeMode, FailsafeMode.Honeypot
            ),
            debug_logging=asbool(settings.get("captcha.debug_logging", False)),
            whitelist_logged_in=asbool(settings.get("whitelist.logged_in", False)),
            whitelist_roles=as_set(settings.get("whitelist.roles")),
            whitelist_ips=as_lines(settings.get("whitelist.ips")),
            blocklist_ips=as_lines(settings.get("blocklist.ips")),
            honeypot_enabled=honeypot_enabled,
            honeypot_min_time=min_time,
            ratelimit_enabled=asbool(settings.get("ratelimit.enabled", False)),
            ratelimit_requests=_positive(
                settings, "ratelimit.requests", DEFAULT_RATELIMIT_REQUESTS
            ),
            ratelimit_lockout=_positive(
                settings, "ratelimit.lockout", DEFAULT_RATELIMIT_LOCKOUT
            ),
            ratelimit_window=_positive(
                settings, "ratelimit.window", DEFAULT_RATELIMIT_WINDOW
            ),
            exempt_payment_methods=as_set(settings.get("exemptions.payment_methods")),
            exempt_forms=(
                as_set(exempt_forms)
                if exempt_forms is not None
                else frozenset(DEFAULT_EXEMPT_FORMS)
            ),
            proxy_headers=as_tuple(settings.get("proxy.headers")),
            proxy_trusted=as_lines(settings.get("proxy.trusted")),
            proxy_count=_positive(settings, "proxy.count", 1),
        )

    def is_form_enabled(self, form_id):
        return form_id in self.forms


def get_protection_settings(registry):
    return registry["formguard.settings"]


def configure(settings=None):
    if settings is None:
        settings = {}

    # Allow configuring the log level. See `formguard/logging.py` for more
    maybe_set(settings, "logging.level", "LOG_LEVEL")

    maybe_set(
        settings,
        "formguard.env",
        "FORMGUARD_ENV",
        Environment,
        default=Environment.production,
    )

    maybe_set(settings, "captcha.provider", "CAPTCHA_PROVIDER")
    maybe_set(settings, "captcha.site_key", "CAPTCHA_SITE_KEY")
    maybe_set(settings, "captcha.secret_key", "CAPTCHA_SECRET_KEY")
    maybe_set(settings, "captcha.score_threshold", "CAPTCHA_SCORE_THRESHOLD", float)
    maybe_set(settings, "captcha.theme", "CAPTCHA_THEME")
    maybe_set(settings, "captcha.size", "CAPTCHA_SIZE")
    maybe_set(settings, "captcha.timeout", "CAPTCHA_TIMEOUT", float)
    maybe_set(settings, "captcha.forms", "CAPTCHA_FORMS")
    maybe_set(settings, "captcha.failsafe_mode", "CAPTCHA_FAILSAFE_MODE")
    maybe_set(
        settings,
        "captcha.debug_logging",
        "CAPTCHA_DEBUG_LOGGING",
        coercer=asbool,
        default=False,
    )
    maybe_set(settings, "whitelist.logged_in", "WHITELIST_LOGGED_IN", coercer=asbool)
    maybe_set(settings, "whitelist.roles", "WHITELIST_ROLES")
    maybe_set(settings, "whitelist.ips", "WHITELIST_IPS")
    maybe_set(settings, "blocklist.ips", "BLOCKLIST_IPS")
    maybe_set(settings, "honeypot.enabled", "HONEYPOT_ENABLED", coercer=asbool)
    maybe_set(settings, "honeypot.min_time", "HONEYPOT_MIN_TIME", int)
    maybe_set(settings, "honeypot.secret", "HONEYPOT_SECRET")
    maybe_set(settings, "honeypot.url", "REDIS_URL")
    maybe_set(settings, "ratelimit.enabled", "RATELIMIT_ENABLED", coercer=asbool)
    maybe_set(settings, "ratelimit.requests", "RATELIMIT_REQUESTS", int)
    maybe_set(settings, "ratelimit.lockout", "RATELIMIT_LOCKOUT", int)
    maybe_set(settings, "ratelimit.window", "RATELIMIT_WINDOW", int)
    maybe_set(settings, "ratelimit.url", "REDIS_URL", default="memory://")
    maybe_set(settings, "exemptions.payment_methods", "EXEMPT_PAYMENT_METHODS")
    maybe_set(settings, "exemptions.forms", "EXEMPT_FORMS")
    maybe_set(settings, "proxy.headers", "PROXY_HEADERS")
    maybe_set(settings, "proxy.trusted", "PROXY_TRUSTED")
    maybe_set(settings, "proxy.count", "PROXY_COUNT", int)
    maybe_set(settings, "metrics.backend", "METRICS_BACKEND")
    maybe_set(settings, "metrics.host", "METRICS_HOST")
    maybe_set(settings, "metrics.port", "METRICS_PORT", int)

    config = Configurator(settings=settings)
    config.include("formguard")

    # Commit our changes, so the services are available to scripts as well
    config.commit()

    return config


def includeme(config):
    # Parse and validate once, so a misconfiguration fails at startup instead
    # of on the first protected form submission.
    config.registry["formguard.settings"] = ProtectionSettings.from_settings(
        config.registry.settings
    )
