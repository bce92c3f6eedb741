# SPDX-License-Identifier: Apache-2.0

"""
Skip predicates decide whether an actor is exempt from verification on a form.

A predicate is any callable taking ``(form_id, actor)`` and returning a bool.
Additional ones can be registered by the hosting application with the
``config.register_skip_predicate`` directive.
"""

from dataclasses import dataclass, field

from formguard.ip_addresses import IPMatcher

# Wallet payments happen in a popup owned by the payment provider, where no
# widget can be shown.
EXPRESS_PAYMENT_METHODS = frozenset(
    {
        # Apple Pay
        "apple_pay",
        "woocommerce_payments_apple_pay",
        "stripe_apple_pay",
        "ppcp-apple-pay",
        # Google Pay
        "google_pay",
        "woocommerce_payments_google_pay",
        "stripe_google_pay",
        "ppcp-google-pay",
        # Amazon Pay
        "amazon_payments_advanced",
        "amazon_pay",
        # Payment request buttons
        "woocommerce_payments",
        "stripe_link",
    }
)
EXPRESS_PAYMENT_PATTERNS = (
    "apple_pay",
    "applepay",
    "google_pay",
    "googlepay",
    "amazon_pay",
    "amazonpay",
)


@dataclass(frozen=True)
class Actor:
    ip: str | None = None
    authenticated: bool = False
    roles: frozenset[str] = frozenset()
    params: dict = field(default_factory=dict)

    @classmethod
    def from_request(cls, request, resolver=None):
        user = getattr(request, "user", None)
        return cls(
            ip=resolver(request) if resolver is not None else request.remote_addr,
            authenticated=request.authenticated_userid is not None,
            roles=frozenset(getattr(user, "roles", None) or ()),
            params=request.POST,
        )


class LoggedInExemption:
    def __init__(self, enabled):
        self.enabled = enabled

    def __call__(self, form_id, actor):
        return self.enabled and actor.authenticated


class RoleExemption:
    def __init__(self, roles):
        self.roles = frozenset(roles)

    def __call__(self, form_id, actor):
        return bool(self.roles & actor.roles)


class AddressExemption:
    def __init__(self, entries):
        self.matcher = IPMatcher(entries)

    def __call__(self, form_id, actor):
        return bool(self.matcher) and actor.ip in self.matcher


def is_express_payment(payment_method):
    if payment_method in EXPRESS_PAYMENT_METHODS:
        return True
    payment_method = payment_method.lower()
    return any(pattern in payment_method for pattern in EXPRESS_PAYMENT_PATTERNS)


class PaymentMethodExemption:
    """
    Skips checkout forms paid through one of the given payment methods, or
    through an express wallet, whose own checkout flow already protects them.
    """

    def __init__(self, payment_methods, forms, *, express=True):
        self.payment_methods = frozenset(payment_methods)
        self.forms = frozenset(forms)
        self.express = express

    @classmethod
    def from_settings(cls, settings):
        return cls(settings.exempt_payment_methods, settings.exempt_forms)

    def __call__(self, form_id, actor):
        if form_id not in self.forms:
            return False

        payment_method = actor.params.get("payment_method")
        if not payment_method:
            return False
        if payment_method in self.payment_methods:
            return True
        return self.express and is_express_payment(payment_method)


def builtin_skip_predicates(settings):
    return [
        LoggedInExemption(settings.whitelist_logged_in),
        RoleExemption(settings.whitelist_roles),
        AddressExemption(settings.whitelist_ips),
        PaymentMethodExemption.from_settings(settings),
    ]
