# SPDX-License-Identifier: Apache-2.0

import logging

import redis

from zope.interface import implementer

from formguard.captcha import ICaptchaService, TransportError
from formguard.captcha.results import Err, ErrorCode, Ok
from formguard.config import FailsafeMode, ProviderId, get_protection_settings
from formguard.ip_addresses import ClientAddressResolver, IPMatcher
from formguard.metrics import IMetricsService
from formguard.rate_limiting import IRateLimiter
from formguard.verification.events import FailsafeActivated, VerificationAttempted
from formguard.verification.interfaces import IVerificationService
from formguard.verification.predicates import Actor

logger = logging.getLogger(__name__)

SKIP_PREDICATES = "formguard.skip_predicates"


def predicate_name(predicate):
    return getattr(predicate, "__name__", type(predicate).__name__)


@implementer(IVerificationService)
class VerificationService:
    """
    Combines the exemptions, the blocklist, the rate limiter and the configured
    provider into a single decision about a form submission.
    """

    def __init__(
        self, request, *, settings, actor, limiter, metrics, skip_predicates=()
    ):
        self.request = request
        self.settings = settings
        self.actor = actor
        self.limiter = limiter
        self.skip_predicates = list(skip_predicates)
        self.blocklist = IPMatcher(settings.blocklist_ips)
        self._metrics = metrics

    @classmethod
    def create_service(cls, context, request):
        settings = get_protection_settings(request.registry)
        return cls(
            request,
            settings=settings,
            actor=Actor.from_request(
                request, resolver=ClientAddressResolver.from_settings(settings)
            ),
            limiter=request.find_service(IRateLimiter, context=None),
            metrics=request.find_service(IMetricsService, context=None),
            skip_predicates=request.registry.get(SKIP_PREDICATES, ()),
        )

    def _provider(self):
        if self.settings.provider.id is not None:
            provider = self.request.find_service(
                ICaptchaService, name="captcha", context=None
            )
            if provider.enabled:
                return provider
            logger.debug("%s is missing its keys, ignoring it", provider.name)

        if self.settings.honeypot_enabled:
            return self._honeypot()

        return None

    def _honeypot(self):
        return self.request.find_service(ICaptchaService, name="honeypot", context=None)

    @property
    def honeypot_available(self):
        settings = self.request.registry.settings
        return bool(settings.get("honeypot.url") and settings.get("honeypot.secret"))

    def skipped_by(self, form_id):
        """
        Return the first skip predicate exempting the actor from ``form_id``,
        or None.
        """
        for predicate in self.skip_predicates:
            if predicate(form_id, self.actor):
                return predicate
        return None

    def is_skipped(self, form_id):
        return self.skipped_by(form_id) is not None

    def _storage_error(self, provider, exc):
        logger.warning("Error reaching the %s storage: %r", provider.name, exc)
        self._metrics.increment(
            "formguard.verification.error",
            tags=[f"provider:{provider.provider_id.value}"],
        )

    def render(self, form_id):
        if not self.settings.is_form_enabled(form_id) or self.is_skipped(form_id):
            return None

        provider = self._provider()
        if provider is None:
            return None

        try:
            widget = provider.render(form_id)
        except redis.RedisError as exc:
            self._storage_error(provider, exc)
            return None

        if (
            self.settings.failsafe_mode == FailsafeMode.Honeypot
            and provider.provider_id != ProviderId.Honeypot
            and self.honeypot_available
        ):
            honeypot = self._honeypot()
            try:
                widget = widget._replace(fallback=honeypot.render(form_id))
            except redis.RedisError as exc:
                self._storage_error(honeypot, exc)
        return widget

    def verify(self, form_id, params=None):
        if not self.settings.is_form_enabled(form_id):
            return self._finish(form_id, Ok(), stage="disabled")

        # Exemptions come first, so an exempt actor is never locked out.
        predicate = self.skipped_by(form_id)
        if predicate is not None:
            return self._finish(
                form_id, Ok(), stage="skipped", predicate=predicate_name(predicate)
            )

        if params is None:
            params = self.actor.params
        ip = self.actor.ip

        if ip is not None and ip in self.blocklist:
            return self._finish(form_id, Err(ErrorCode.IpBlocked), stage="blocklist")

        if ip is not None and self.limiter.is_locked_out(ip):
            return self._finish(
                form_id,
                Err(ErrorCode.RateLimited, self.limiter.lockout_message(ip)),
                stage="lockout",
            )

        provider = self._provider()
        if provider is None:
            return self._finish(form_id, Ok(), stage="no_provider")

        try:
            result = provider.verify(params, remote_ip=ip)
        except TransportError as exc:
            result = self._failsafe(form_id, provider, params, exc)
        except redis.RedisError as exc:
            self._storage_error(provider, exc)
            result = Err(ErrorCode.ServiceUnavailable, provider=provider.name)

        if ip is not None:
            if result.ok:
                self.limiter.record_success(ip)
            else:
                self.limiter.record_failure(ip)

        return self._finish(
            form_id, result, stage="provider", provider=provider.provider_id.value
        )

    def _failsafe(self, form_id, provider, params, exc):
        mode = self.settings.failsafe_mode

        self._metrics.increment(
            "formguard.failsafe", tags=[f"mode:{mode.value}", f"error:{exc.code}"]
        )
        self.request.registry.notify(
            FailsafeActivated(form_id, mode, exc, self.request)
        )

        if mode == FailsafeMode.Allow:
            return Ok()
        if mode == FailsafeMode.Honeypot and self.honeypot_available:
            honeypot = self._honeypot()
            try:
                return honeypot.fallback().verify(params, remote_ip=self.actor.ip)
            except redis.RedisError as storage_exc:
                self._storage_error(honeypot, storage_exc)
        return Err(ErrorCode.ServiceUnavailable, provider=provider.name)

    def _finish(self, form_id, result, **extra):
        outcome = "ok" if result.ok else "failed"
        tags = [f"form:{form_id}"]
        if not result.ok:
            tags.append(f"code:{result.code.value}")
        self._metrics.increment(f"formguard.verification.{outcome}", tags=tags)

        self.request.registry.notify(
            VerificationAttempted(form_id, result, self.request, extra)
        )
        return result
