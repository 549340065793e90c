"""
Notification delivery for saved searches.

This module handles:
- Rendering and sending saved-search alert and digest emails via Resend
- Signed one-click unsubscribe tokens
- Error report files for failed notifications
"""

from .email_sender import send_saved_search_notification
from .error_logger import log_notification_error
from .unsubscribe_tokens import generate_unsubscribe_token, validate_unsubscribe_token

__all__ = [
    'send_saved_search_notification',
    'log_notification_error',
    'generate_unsubscribe_token',
    'validate_unsubscribe_token',
]
