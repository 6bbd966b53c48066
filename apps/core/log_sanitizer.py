"""
Log sanitization to prevent sensitive data leakage.

Automatically redacts sensitive information from logs including:
- Bearer and JWT tokens
- Passwords and secrets
- Database URLs with passwords
"""
import re
import logging


class SanitizingFormatter(logging.Formatter):
    """
    Custom log formatter that sanitizes sensitive data.

    Redacts bearer tokens, JWTs, passwords, secrets, Authorization headers
    and credentials embedded in connection strings.
    """

    # Regex patterns for sensitive data
    PATTERNS = [
        # Bearer tokens
        (re.compile(r'Bearer\s+([a-zA-Z0-9_\-\.]{20,})', re.IGNORECASE), r'Bearer [REDACTED]'),

        # JWT tokens (header.payload.signature format)
        (re.compile(r'eyJ[a-zA-Z0-9_\-]+\.eyJ[a-zA-Z0-9_\-]+\.[a-zA-Z0-9_\-]+'), r'[REDACTED_JWT]'),

        # Passwords
        (re.compile(r'password["\s:=]+([^\s,\]}"\']+)', re.IGNORECASE), r'password=[REDACTED]'),
        (re.compile(r'passwd["\s:=]+([^\s,\]}"\']+)', re.IGNORECASE), r'passwd=[REDACTED]'),
        (re.compile(r'pwd["\s:=]+([^\s,\]}"\']+)', re.IGNORECASE), r'pwd=[REDACTED]'),

        # Secrets
        (re.compile(r'secret[_-]?key["\s:=]+([a-zA-Z0-9_\-]{20,})', re.IGNORECASE), r'secret_key=[REDACTED]'),
        (re.compile(r'secret["\s:=]+([a-zA-Z0-9_\-]{20,})', re.IGNORECASE), r'secret=[REDACTED]'),

        # Database URLs with passwords
        (re.compile(r'://([^:/@\s]+):([^@\s]+)@'), r'://\1:[REDACTED]@'),

        # Generic tokens
        (re.compile(r'token["\s:=]+([a-zA-Z0-9_\-\.]{32,})', re.IGNORECASE), r'token=[REDACTED]'),

        # Authorization headers
        (re.compile(r'Authorization["\s:]+(?!Bearer \[REDACTED\])([^\s,\]}"\']+)', re.IGNORECASE), r'Authorization: [REDACTED]'),
    ]

    def format(self, record):
        """
        Format log record and sanitize sensitive data.

        Args:
            record: LogRecord instance

        Returns:
            Sanitized log message
        """
        return sanitize_text(super().format(record))


class SanitizingFilter(logging.Filter):
    """
    Logging filter that sanitizes sensitive data in log records.

    Can be used in addition to or instead of SanitizingFormatter.
    Renders the message with its args, then sanitizes the result, so a
    redaction never breaks the %-placeholders of the format string.
    """

    def filter(self, record):
        """
        Sanitize log record message.

        Args:
            record: LogRecord instance

        Returns:
            True (always allows the record through)
        """
        record.msg = sanitize_text(record.getMessage())
        record.args = ()

        return True


def sanitize_text(text: str) -> str:
    """Apply every redaction pattern to ``text``."""
    for pattern, replacement in SanitizingFormatter.PATTERNS:
        text = pattern.sub(replacement, text)
    return text
