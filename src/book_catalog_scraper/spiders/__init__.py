"""Shared utilities for catalog spiders."""

from __future__ import annotations

import logging

from scrapy.spidermiddlewares.httperror import HttpError


def log_request_failure(
    failure,
    logger: logging.Logger | None = None,
) -> None:
    """Log a Scrapy request failure with useful detail.

    For HTTP errors the status code, URL, and first 500 characters of the
    response body are included.  For all other failures (DNS, timeout, …)
    the URL and exception message are logged.
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    request = failure.request

    if failure.check(HttpError):
        response = failure.value.response
        logger.error(
            "HTTP %d on %s, body: %.500s",
            response.status,
            request.url,
            response.text,
        )
    else:
        logger.error("Request failed on %s: %s", request.url, failure.value)
