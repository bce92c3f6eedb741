# SPDX-License-Identifier: Apache-2.0


class VerificationAttempted:
    """
    Sent through the registry with the outcome of every verification. The
    ``stage`` in ``extra`` tells which step decided it: disabled, skipped (with
    the name of the matching predicate), blocklist, lockout, no_provider or
    provider.
    """

    def __init__(self, form_id, result, request, extra=None):
        self.form_id = form_id
        self.result = result
        self.request = request
        self.extra = extra if extra is not None else {}


class FailsafeActivated:
    """
    Sent through the registry when the remote provider could not be reached
    and the failsafe mode decided the outcome instead.
    """

    def __init__(self, form_id, mode, error, request):
        self.form_id = form_id
        self.mode = mode
        self.error = error
        self.request = request
