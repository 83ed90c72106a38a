"""Report notification: template rendering and e-mail delivery."""

from fileguard.notify.mailer import EmailNotifier
from fileguard.notify.template import render, should_notify

__all__ = (
    "EmailNotifier",
    "render",
    "should_notify",
)
