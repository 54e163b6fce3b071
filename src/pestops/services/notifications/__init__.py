"""Outbound notifications."""

from .email import ResendEmailClient, send_email

__all__ = ["ResendEmailClient", "send_email"]
