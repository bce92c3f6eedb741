# SPDX-License-Identifier: Apache-2.0

import logging

import pretend
import pytest

from formguard import verification
from formguard.captcha.results import Err, ErrorCode, Ok
from formguard.config import FailsafeMode, ProtectionSettings
from formguard.rate_limiting import LockoutApplied
from formguard.verification import (
    FailsafeActivated,
    IVerificationService,
    VerificationAttempted,
    VerificationService,
    includeme,
    register_skip_predicate,
)
from formguard.verification.predicates import (
    AddressExemption,
    LoggedInExemption,
    PaymentMethodExemption,
    RoleExemption,
)
from formguard.verification.services import SKIP_PREDICATES


class TestRegisterSkipPredicate:
    def test_appends(self):
        first, second = pretend.stub(), pretend.stub()
        registry = {}
        config = pretend.stub(
            registry=registry,
            maybe_dotted=pretend.call_recorder(lambda obj: obj),
        )

        register_skip_predicate(config, first)
        register_skip_predicate(config, second)

        assert registry[SKIP_PREDICATES] == [first, second]
        assert config.maybe_dotted.calls == [pretend.call(first), pretend.call(second)]

    def test_resolves_dotted_names(self):
        predicate = pretend.stub()
        registry = {}
        config = pretend.stub(
            registry=registry,
            maybe_dotted=pretend.call_recorder(lambda obj: predicate),
        )

        register_skip_predicate(config, "myapp.predicates.is_partner")

        assert registry[SKIP_PREDICATES] == [predicate]


@pytest.mark.parametrize("debug_logging", [True, False])
def test_includeme(debug_logging):
    settings = ProtectionSettings.from_settings(
        {"captcha.debug_logging": str(debug_logging)}
    )
    registered = []
    config = pretend.stub(
        registry=pretend.stub(__getitem__={"formguard.settings": settings}.__getitem__),
        add_directive=pretend.call_recorder(lambda name, directive: None),
        register_skip_predicate=pretend.call_recorder(registered.append),
        register_service_factory=pretend.call_recorder(lambda factory, iface: None),
        add_subscriber=pretend.call_recorder(lambda subscriber, iface: None),
    )

    includeme(config)

    assert config.add_directive.calls == [
        pretend.call("register_skip_predicate", register_skip_predicate)
    ]
    assert [type(p) for p in registered] == [
        LoggedInExemption,
        RoleExemption,
        AddressExemption,
        PaymentMethodExemption,
    ]
    assert config.register_service_factory.calls == [
        pretend.call(VerificationService.create_service, IVerificationService)
    ]
    if debug_logging:
        assert config.add_subscriber.calls == [
            pretend.call(verification.log_verification, VerificationAttempted),
            pretend.call(verification.log_failsafe, FailsafeActivated),
            pretend.call(verification.log_lockout, LockoutApplied),
        ]
    else:
        assert config.add_subscriber.calls == []


class TestLogSubscribers:
    def test_log_verification_ok(self, caplog):
        caplog.set_level(logging.INFO, logger="formguard.verification")
        event = VerificationAttempted("login", Ok(), pretend.stub(), {"stage": "x"})

        verification.log_verification(event)

        assert caplog.record_tuples == [
            (
                "formguard.verification",
                logging.INFO,
                "Verification passed on login {'stage': 'x'}",
            )
        ]

    def test_log_verification_failed(self, caplog):
        caplog.set_level(logging.INFO, logger="formguard.verification")
        event = VerificationAttempted(
            "login", Err(ErrorCode.TooFast), pretend.stub()
        )

        verification.log_verification(event)

        assert caplog.record_tuples == [
            (
                "formguard.verification",
                logging.WARNING,
                "Verification failed on login with too_fast: "
                "Form submitted too quickly. Please take your time. {}",
            )
        ]

    def test_log_failsafe(self, caplog):
        caplog.set_level(logging.INFO, logger="formguard.verification")
        event = FailsafeActivated(
            "register", FailsafeMode.Block, ValueError("timed out"), pretend.stub()
        )

        verification.log_failsafe(event)

        assert caplog.record_tuples == [
            (
                "formguard.verification",
                logging.WARNING,
                "Verification service unavailable on register, applying the "
                "block failsafe: timed out",
            )
        ]

    def test_log_lockout(self, caplog):
        caplog.set_level(logging.INFO, logger="formguard.verification")
        event = LockoutApplied("1.2.3.4", None, "2026-03-01 12:15:00+00:00")

        verification.log_lockout(event)

        assert caplog.record_tuples == [
            (
                "formguard.verification",
                logging.INFO,
                "Lockout of 1.2.3.4 expires at 2026-03-01 12:15:00+00:00",
            )
        ]
