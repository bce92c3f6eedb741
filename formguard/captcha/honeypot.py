# SPDX-License-Identifier: Apache-2.0

"""
A self hosted verification, with no third party involved.

Every rendered form carries hidden fields that a human never touches, a signed
timestamp, and a small arithmetic challenge that the page script solves before
submitting. Bots tend to fill in every field, submit immediately, replay old
submissions, or not run scripts at all, and each of those is caught here.
"""

from __future__ import annotations

import base64
import collections
import copy
import datetime
import logging
import secrets
import time
import typing

import redis

from zope.interface import implementer

from formguard.config import ConfigurationError, ProviderId, get_protection_settings
from formguard.metrics import IMetricsService
from formguard.utils.crypto import Signer, random_digits, random_letters

from .interfaces import ICaptchaService, Widget
from .results import Err, ErrorCode, Ok, VerificationResult

if typing.TYPE_CHECKING:
    from pyramid.request import Request

logger = logging.getLogger(__name__)

# Must stay empty, it is only visible to bots.
TRAP_FIELD = "alt_s"
# Plausible looking inputs, hidden from humans, that bots like to fill in.
DECOY_FIELDS = (
    "website_url",
    "company_website",
    "phone_number",
    "fax_number",
    "address_line2",
)

NONCE_FIELD = "fg_hp_nonce"
TIME_FIELD = "fg_hp_time"
CHALLENGE_FIELD = "fg_hp_challenge"
RESPONSE_FIELD = "fg_hp_response"
MARKER_FIELD = "fg_hp_field"

MAX_AGE = 24 * 60 * 60

FIELD_NAME_KEY = "formguard/honeypot/field_name"
SPAM_TOTAL_KEY = "formguard/honeypot/spam/total"
SPAM_DAILY_KEY = "formguard/honeypot/spam/{day}"
SPAM_DAILY_TTL = 2 * 24 * 60 * 60
USED_NONCE_KEY = "formguard/honeypot/nonce/{nonce}"

HoneypotChallenge = collections.namedtuple(
    "HoneypotChallenge",
    ("field_name", "nonce", "timestamp", "challenge_payload", "expected_result"),
)

_DIGITS36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def base36(number: int) -> str:
    if number < 0:
        return "-" + base36(-number)
    if number < 36:
        return _DIGITS36[number]
    quotient, remainder = divmod(number, 36)
    return base36(quotient) + _DIGITS36[remainder]


def encode_challenge(a: int, b: int, c: int, timestamp: int) -> str:
    return base64.urlsafe_b64encode(f"{a}.{b}.{c}.{timestamp}".encode()).decode()


def decode_challenge(payload: str) -> tuple[int, ...] | None:
    try:
        decoded = base64.urlsafe_b64decode(payload.encode("ascii")).decode("ascii")
        values = tuple(int(part) for part in decoded.split("."))
    except ValueError:
        return None

    if len(values) != 4:
        return None
    return values


def _as_text(value) -> str | None:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


def _parse_timestamp(value) -> int | None:
    try:
        timestamp = int(value)
    except (TypeError, ValueError):
        return None
    return timestamp if timestamp > 0 else None


def new_field_name() -> str:
    return random_letters(6) + random_digits(3 + secrets.randbelow(2))


@implementer(ICaptchaService)
class Service:
    provider_id = ProviderId.Honeypot
    name = ProviderId.Honeypot.label
    token_field = NONCE_FIELD

    def __init__(
        self,
        redis_client,
        *,
        secret: str,
        min_time: int,
        metrics,
        clock=time.time,
        primary: bool = True,
    ):
        self.redis_client = redis_client
        self.min_time = min_time
        self.primary = primary
        self.clock = clock
        self._signer = Signer(secret, salt="formguard.honeypot")
        self._metrics = metrics

    @classmethod
    def create_service(cls, _context, request: Request) -> Service:
        settings = request.registry.settings
        redis_url = settings.get("honeypot.url")
        secret = settings.get("honeypot.secret")
        if not redis_url or not secret:
            raise ConfigurationError(
                "honeypot.url and honeypot.secret are required to use the honeypot"
            )

        return cls(
            redis.StrictRedis.from_url(redis_url),
            secret=secret,
            min_time=get_protection_settings(request.registry).honeypot_min_time,
            metrics=request.find_service(IMetricsService, context=None),
        )

    def fallback(self) -> Service:
        """
        A copy of this service for use when a remote provider is unavailable,
        where a failed script challenge is only logged.
        """
        service = copy.copy(self)
        service.primary = False
        return service

    @property
    def enabled(self) -> bool:
        return True

    @property
    def csp_policy(self) -> dict[str, list[str]]:
        return {}

    def test_connection(self, site_key, secret_key) -> VerificationResult:
        # There are no keys to check.
        return Ok()

    # Site state

    def get_field_name(self) -> str:
        field_name = self.redis_client.get(FIELD_NAME_KEY)
        if field_name is None:
            # Concurrent first renders may race here, only one of them wins.
            self.redis_client.set(FIELD_NAME_KEY, new_field_name(), nx=True)
            field_name = self.redis_client.get(FIELD_NAME_KEY)
        return _as_text(field_name)

    def regenerate_field_name(self) -> str:
        field_name = new_field_name()
        self.redis_client.set(FIELD_NAME_KEY, field_name)
        logger.info("Rotated the honeypot field name to %s", field_name)
        return field_name

    def _today(self) -> str:
        now = datetime.datetime.fromtimestamp(self.clock(), tz=datetime.timezone.utc)
        return now.strftime("%Y-%m-%d")

    def spam_stats(self) -> dict[str, int]:
        today = self.redis_client.get(SPAM_DAILY_KEY.format(day=self._today()))
        total = self.redis_client.get(SPAM_TOTAL_KEY)
        return {"today": int(today or 0), "total": int(total or 0)}

    def _reject(self, code: ErrorCode, **details) -> VerificationResult:
        daily_key = SPAM_DAILY_KEY.format(day=self._today())
        self.redis_client.incr(daily_key)
        self.redis_client.expire(daily_key, SPAM_DAILY_TTL)
        self.redis_client.incr(SPAM_TOTAL_KEY)

        self._metrics.increment(
            "formguard.honeypot.rejected", tags=[f"reason:{code.value}"]
        )
        logger.info("Honeypot rejected a submission: %s", code.value)
        return Err(code, **details)

    # Challenges

    def _nonce_value(self, field_name: str, timestamp: int) -> str:
        return f"{field_name}|{timestamp}"

    def generate_challenge(self) -> HoneypotChallenge:
        field_name = self.get_field_name()
        timestamp = int(self.clock())
        nonce = self._signer.get_signature(self._nonce_value(field_name, timestamp))

        a = secrets.randbelow(20) + 1
        b = secrets.randbelow(20) + 1
        c = secrets.randbelow(100)

        return HoneypotChallenge(
            field_name=field_name,
            nonce=nonce.decode("ascii"),
            timestamp=timestamp,
            challenge_payload=encode_challenge(a, b, c, timestamp),
            expected_result=base36(a * b + c),
        )

    def render(self, form_id) -> Widget:
        challenge = self.generate_challenge()
        return Widget(
            provider=self.provider_id,
            script_src=None,
            class_name="formguard-hp",
            attributes={
                "data-form": form_id,
                "data-field": challenge.field_name,
                "data-trap": TRAP_FIELD,
                "data-decoys": " ".join(DECOY_FIELDS),
                "data-marker-field": MARKER_FIELD,
                "data-response-field": RESPONSE_FIELD,
                NONCE_FIELD: challenge.nonce,
                TIME_FIELD: str(challenge.timestamp),
                CHALLENGE_FIELD: challenge.challenge_payload,
            },
        )

    def _challenge_solved(self, payload, timestamp: int, response) -> bool:
        values = decode_challenge(payload)
        if values is None:
            return False

        a, b, c, challenge_timestamp = values
        if challenge_timestamp != timestamp:
            return False

        return str(response or "").strip().lower() == base36(a * b + c)

    def verify(self, params, remote_ip=None) -> VerificationResult:
        params = params or {}
        field_name = self.get_field_name()

        # The field is injected by the page script.
        if field_name not in params:
            return self._reject(ErrorCode.NoJs)

        if params.get(TRAP_FIELD):
            return self._reject(ErrorCode.TrapFilled)
        if any(params.get(name) for name in DECOY_FIELDS):
            return self._reject(ErrorCode.HoneypotFilled)

        marker = params.get(MARKER_FIELD)
        if marker is not None and marker != field_name:
            return self._reject(ErrorCode.InvalidField)

        now = int(self.clock())
        timestamp = _parse_timestamp(params.get(TIME_FIELD))
        if timestamp is None or timestamp > now:
            return self._reject(ErrorCode.InvalidTime)

        nonce = params.get(NONCE_FIELD) or ""
        if not nonce or not self._signer.verify_signature(
            self._nonce_value(field_name, timestamp), nonce
        ):
            return self._reject(ErrorCode.InvalidNonce)

        elapsed = now - timestamp
        if elapsed < self.min_time:
            return self._reject(ErrorCode.TooFast, elapsed=elapsed)
        if elapsed > MAX_AGE:
            return self._reject(ErrorCode.TooOld, elapsed=elapsed)

        payload = params.get(CHALLENGE_FIELD)
        if payload and not self._challenge_solved(
            payload, timestamp, params.get(RESPONSE_FIELD)
        ):
            if self.primary:
                return self._reject(ErrorCode.JsFailed)
            logger.warning("Accepting a fallback submission with a failed challenge")

        # Only submissions passing every other check consume their nonce.
        if not self.redis_client.set(
            USED_NONCE_KEY.format(nonce=nonce), 1, nx=True, ex=MAX_AGE
        ):
            return self._reject(ErrorCode.InvalidNonceHoneypot)

        return Ok()
