# SPDX-License-Identifier: Apache-2.0

import functools
import logging
import math
import sys
import threading
import time

from datetime import datetime, timedelta, timezone

import redis

from limits.storage import storage_from_string
from zope.interface import implementer

from formguard.config import (
    DEFAULT_RATELIMIT_LOCKOUT,
    DEFAULT_RATELIMIT_REQUESTS,
    DEFAULT_RATELIMIT_WINDOW,
    get_protection_settings,
)
from formguard.ip_addresses import IPMatcher
from formguard.rate_limiting.interfaces import IRateLimiter

__all__ = [
    "DummyRateLimiter",
    "FailureRateLimiter",
    "IRateLimiter",
    "LockoutApplied",
    "includeme",
]

logger = logging.getLogger(__name__)

# Failure windows that started longer ago than this are swept by cleanup(),
# whatever the configured window is.
STALE_WINDOW = timedelta(hours=24)


def _return_on_exception(rvalue, *exceptions):
    def deco(fn):
        @functools.wraps(fn)
        def wrapper(self, *args, **kwargs):
            try:
                return fn(self, *args, **kwargs)
            except exceptions as exc:
                logger.warning("Error computing rate limits: %r", exc)
                self._metrics.increment(
                    "formguard.ratelimiter.error", tags=[f"call:{fn.__name__}"]
                )
                return rvalue(self) if callable(rvalue) else rvalue

        return wrapper

    return deco


class LockoutApplied:
    """
    Sent through the registry whenever an identifier gets locked out.
    """

    def __init__(self, identifier, duration, expires):
        self.identifier = identifier
        self.duration = duration
        self.expires = expires

    def __repr__(self):
        return (
            f"LockoutApplied({self.identifier!r}, duration={self.duration!r}, "
            f"expires={self.expires!r})"
        )


def _plural(count, unit):
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_lockout_message(remaining):
    minutes = math.ceil(remaining.total_seconds() / 60)
    if minutes > 60:
        wait = _plural(math.ceil(minutes / 60), "hour")
    else:
        wait = _plural(max(minutes, 1), "minute")
    return f"Too many failed attempts. Please try again in {wait}."


@implementer(IRateLimiter)
class FailureRateLimiter:
    """
    Counts failed verifications per identifier (the client address) inside a
    fixed window that opens with the first failure, and locks the identifier
    out once the count reaches ``max_attempts``.

    Both the failure count and the lockout are counters in a ``limits``
    storage, so increments are atomic even when the storage is shared between
    processes, and expiry is handled by the storage itself.
    """

    def __init__(
        self,
        storage,
        *,
        max_attempts=DEFAULT_RATELIMIT_REQUESTS,
        lockout_minutes=DEFAULT_RATELIMIT_LOCKOUT,
        window_minutes=DEFAULT_RATELIMIT_WINDOW,
        whitelist=None,
        metrics,
        notify=None,
    ):
        self._storage = storage
        self.max_attempts = (
            max_attempts if max_attempts > 0 else DEFAULT_RATELIMIT_REQUESTS
        )
        self.lockout_seconds = 60 * (
            lockout_minutes if lockout_minutes > 0 else DEFAULT_RATELIMIT_LOCKOUT
        )
        self.window_seconds = 60 * (
            window_minutes if window_minutes > 0 else DEFAULT_RATELIMIT_WINDOW
        )
        self._whitelist = IPMatcher(whitelist)
        self._metrics = metrics
        self._notify = notify

        self._tracked = set()
        self._tracked_lock = threading.Lock()

    def _failures_key(self, identifier):
        return f"formguard/failures/{identifier}"

    def _lockout_key(self, identifier):
        return f"formguard/lockouts/{identifier}"

    def _track(self, identifier):
        with self._tracked_lock:
            self._tracked.add(identifier)

    def _untrack(self, identifier):
        with self._tracked_lock:
            self._tracked.discard(identifier)

    @_return_on_exception(False, redis.RedisError)
    def is_locked_out(self, identifier):
        key = self._lockout_key(identifier)
        if not self._storage.get(key):
            return False

        if self._storage.get_expiry(key) <= time.time():
            self._storage.clear(key)
            return False

        return True

    @_return_on_exception(None, redis.RedisError)
    def record_failure(self, identifier):
        identifier = str(identifier)
        if identifier in self._whitelist:
            return

        # A locked out identifier keeps its lockout until it expires, and
        # starts counting from scratch afterwards.
        if self.is_locked_out(identifier):
            return

        self._track(identifier)
        failures_key = self._failures_key(identifier)
        failures = self._storage.incr(failures_key, self.window_seconds)

        # A concurrent failure may have locked the identifier out between the
        # check above and the increment, drop the count it would leave behind.
        if self.is_locked_out(identifier):
            self._storage.clear(failures_key)
            return

        if failures >= self.max_attempts:
            self._lock_out(identifier, failures)

    def _lock_out(self, identifier, failures):
        key = self._lockout_key(identifier)

        # The lockout is created before the failures are cleared, so a
        # concurrent failure always observes one of them.
        self._storage.incr(key, self.lockout_seconds)
        self._storage.clear(self._failures_key(identifier))

        expires = datetime.fromtimestamp(
            self._storage.get_expiry(key), tz=timezone.utc
        )
        duration = timedelta(seconds=self.lockout_seconds)

        logger.warning(
            "%s locked out for %d minutes after %d failed attempts",
            identifier,
            self.lockout_seconds // 60,
            failures,
        )
        self._metrics.increment("formguard.ratelimiter.lockout")

        if self._notify is not None:
            self._notify(LockoutApplied(identifier, duration, expires))

    @_return_on_exception(None, redis.RedisError)
    def record_success(self, identifier):
        identifier = str(identifier)
        self._storage.clear(self._failures_key(identifier))
        if not self._storage.get(self._lockout_key(identifier)):
            self._untrack(identifier)

    @_return_on_exception(lambda self: self.max_attempts, redis.RedisError)
    def remaining_attempts(self, identifier):
        failures = self._storage.get(self._failures_key(identifier))
        return max(0, self.max_attempts - failures)

    @_return_on_exception(None, redis.RedisError)
    def lockout_remaining(self, identifier):
        if not self.is_locked_out(identifier):
            return None

        expires = self._storage.get_expiry(self._lockout_key(identifier))
        return timedelta(seconds=max(0, expires - time.time()))

    def lockout_message(self, identifier):
        remaining = self.lockout_remaining(identifier)
        if remaining is None:
            return ""
        return format_lockout_message(remaining)

    @_return_on_exception(None, redis.RedisError)
    def clear(self, identifier):
        identifier = str(identifier)
        self._storage.clear(self._failures_key(identifier))
        self._storage.clear(self._lockout_key(identifier))
        self._untrack(identifier)

    def _sweep(self, key, is_stale):
        # Reading an expired key evicts it, so only entries the storage still
        # considers live can be stale here.
        if not self._storage.get(key):
            return False
        if not is_stale(self._storage.get_expiry(key)):
            return False
        self._storage.clear(key)
        return True

    @_return_on_exception(0, redis.RedisError)
    def cleanup(self):
        now = time.time()
        stale_before = now - STALE_WINDOW.total_seconds()

        with self._tracked_lock:
            tracked = list(self._tracked)

        removed = 0
        for identifier in tracked:
            lockout_key = self._lockout_key(identifier)
            failures_key = self._failures_key(identifier)

            if self._sweep(lockout_key, lambda expires: expires <= now):
                removed += 1
            if self._sweep(
                failures_key,
                lambda expires: expires - self.window_seconds <= stale_before,
            ):
                removed += 1

            if not self._storage.get(lockout_key) and not self._storage.get(
                failures_key
            ):
                self._untrack(identifier)

        if removed:
            logger.info("Removed %d expired rate limit entries", removed)
        return removed


@implementer(IRateLimiter)
class DummyRateLimiter:
    max_attempts = sys.maxsize

    def is_locked_out(self, identifier):
        return False

    def record_failure(self, identifier):
        return None

    def record_success(self, identifier):
        return None

    def remaining_attempts(self, identifier):
        return sys.maxsize

    def lockout_remaining(self, identifier):
        return None

    def lockout_message(self, identifier):
        return ""

    def clear(self, identifier):
        return None

    def cleanup(self):
        return 0


def includeme(config):
    settings = get_protection_settings(config.registry)

    storage = storage_from_string(
        config.registry.settings.get("ratelimit.url", "memory://")
    )
    config.registry["ratelimiter.storage"] = storage

    if settings.ratelimit_enabled:
        limiter = FailureRateLimiter(
            storage,
            max_attempts=settings.ratelimit_requests,
            lockout_minutes=settings.ratelimit_lockout,
            window_minutes=settings.ratelimit_window,
            whitelist=settings.whitelist_ips,
            metrics=config.registry["formguard.metrics"],
            notify=config.registry.notify,
        )
    else:
        limiter = DummyRateLimiter()

    # A single limiter for the whole process; its state lives in the storage.
    config.register_service(limiter, IRateLimiter)
