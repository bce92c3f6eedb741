# SPDX-License-Identifier: Apache-2.0

from zope.interface import Interface


class IMetricsService(Interface):
    def increment(metric, value=1, tags=None, sample_rate=1):
        """
        Increment a counter, optionally setting a value, tags and a sample
        rate.
        """

    def gauge(metric, value, tags=None, sample_rate=1):
        """
        Record the value of a gauge, optionally setting a list of tags and a
        sample rate.
        """

    def timing(metric, value, tags=None, sample_rate=1):
        """
        Record a timing, optionally setting tags and a sample rate.
        """

    def timed(metric=None, tags=None, sample_rate=1, use_ms=None):
        """
        A decorator or context manager that will measure the distribution of a
        function's/context's run time. Optionally specify a list of tags or a
        sample rate. The metric is required as a context manager.

        ::
            with IMetricService.timed("formguard.captcha.siteverify"):
                # Call the verification endpoint ...
                pass
        """
