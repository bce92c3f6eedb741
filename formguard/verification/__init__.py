# SPDX-License-Identifier: Apache-2.0

import logging

from formguard.config import get_protection_settings
from formguard.rate_limiting import LockoutApplied
from formguard.verification.events import FailsafeActivated, VerificationAttempted
from formguard.verification.interfaces import IVerificationService
from formguard.verification.predicates import (
    Actor,
    PaymentMethodExemption,
    builtin_skip_predicates,
)
from formguard.verification.services import SKIP_PREDICATES, VerificationService

__all__ = [
    "Actor",
    "FailsafeActivated",
    "IVerificationService",
    "PaymentMethodExemption",
    "VerificationAttempted",
    "VerificationService",
    "includeme",
    "register_skip_predicate",
]

logger = logging.getLogger(__name__)


def register_skip_predicate(config, predicate):
    predicates = config.registry.setdefault(SKIP_PREDICATES, [])
    predicates.append(config.maybe_dotted(predicate))


def log_verification(event):
    if event.result.ok:
        logger.info("Verification passed on %s %r", event.form_id, event.extra)
    else:
        logger.warning(
            "Verification failed on %s with %s: %s %r",
            event.form_id,
            event.result.code.value,
            event.result.message,
            event.extra,
        )


def log_failsafe(event):
    logger.warning(
        "Verification service unavailable on %s, applying the %s failsafe: %s",
        event.form_id,
        event.mode.value,
        event.error,
    )


def log_lockout(event):
    logger.info("Lockout of %s expires at %s", event.identifier, event.expires)


def includeme(config):
    settings = get_protection_settings(config.registry)

    config.add_directive("register_skip_predicate", register_skip_predicate)
    for predicate in builtin_skip_predicates(settings):
        config.register_skip_predicate(predicate)

    config.register_service_factory(
        VerificationService.create_service, IVerificationService
    )

    if settings.debug_logging:
        config.add_subscriber(log_verification, VerificationAttempted)
        config.add_subscriber(log_failsafe, FailsafeActivated)
        config.add_subscriber(log_lockout, LockoutApplied)
