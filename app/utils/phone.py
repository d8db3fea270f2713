"""Helpers for logging guest phone numbers."""


def mask_phone(value: str | None) -> str:
    """
    Mask all but the last four digits of a phone or WhatsApp address.

    Examples:
        >>> mask_phone("whatsapp:+447700900123")
        'whatsapp:*********0123'
    """
    if not value:
        return ""
    prefix, sep, number = value.rpartition(":")
    if len(number) <= 4:
        return value
    return f"{prefix}{sep}{'*' * (len(number) - 4)}{number[-4:]}"
