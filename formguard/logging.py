# SPDX-License-Identifier: Apache-2.0

import logging.config
import uuid

import structlog

from formguard.config import Environment

request_logger = structlog.get_logger("formguard.request")

# Event keys whose values must never reach a log sink.
REDACTED_KEYS = frozenset({"secret", "secret_key", "honeypot_secret", "response"})
REDACTED = "**redacted**"


def _create_id(request):
    return str(uuid.uuid4())


def _redact_secrets(logger, method_name, event_dict):
    for key in REDACTED_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def _renderer(settings):
    if settings.get("formguard.env") == Environment.development:
        return structlog.dev.ConsoleRenderer(colors=True)
    return structlog.processors.JSONRenderer()


def _create_logger(request):
    # This has to use **{} instead of just a kwarg because request.id is not
    # an allowed kwarg name.
    return request_logger.bind(**{"request.id": request.id})


def includeme(config):
    level = config.registry.settings.get("logging.level", "INFO")

    # non structlog things
    foreign_pre_chain = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _redact_secrets,
    ]

    # Configure the standard library logging
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog_formatter": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processor": _renderer(config.registry.settings),
                    "foreign_pre_chain": foreign_pre_chain,
                }
            },
            "handlers": {
                "primary": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": "structlog_formatter",
                },
            },
            "loggers": {
                "datadog.dogstatsd": {"level": "ERROR"},
                "urllib3": {"level": "WARNING"},
            },
            "root": {"level": level, "handlers": ["primary"]},
        }
    )

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _redact_secrets,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Give every request a unique identifier
    config.add_request_method(_create_id, name="id", reify=True)

    # Add a log method to every request.
    config.add_request_method(_create_logger, name="log", reify=True)
