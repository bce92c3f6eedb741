# SPDX-License-Identifier: Apache-2.0

from zope.interface import Attribute, Interface


class IRateLimiter(Interface):
    max_attempts = Attribute("The number of failures that triggers a lockout.")

    def is_locked_out(identifier):
        """
        Returns whether the identifier is currently locked out. An expired
        lockout is removed and reported as not locked out.
        """

    def record_failure(identifier):
        """
        Registers a failed verification for the identifier, locking it out
        once it reaches the configured number of failures within the window.
        """

    def record_success(identifier):
        """
        Forgets the failures accumulated by the identifier. An active lockout
        is left alone and has to expire on its own.
        """

    def remaining_attempts(identifier):
        """
        Returns how many more failures the identifier may accumulate before it
        is locked out.
        """

    def lockout_remaining(identifier):
        """
        Returns a timedelta indicating how long until the lockout of the
        identifier expires, or None when it is not locked out.
        """

    def lockout_message(identifier):
        """
        Returns the message shown to a locked out client, or an empty string.
        """

    def clear(identifier):
        """
        Clears both the failures and any lockout of the identifier.
        """

    def cleanup():
        """
        Sweeps expired lockouts and stale failure windows, returning how many
        entries were removed.
        """
