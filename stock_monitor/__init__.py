"""
Product stock SMS monitor package.

This package contains modules for polling a product's JSON endpoint,
comparing it against a known out-of-stock baseline, sending SMS alerts
through Twilio and coordinating the monitoring loop.  See README.md for
details.
"""

__all__ = [
    "checker",
    "config",
    "notifier",
    "main",
    "utils",
]
