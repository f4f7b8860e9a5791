"""SMS/LMS classification by weighted message width.

Korean carriers bill by EUC-KR byte length: one byte for ASCII, Latin and
punctuation, two bytes for Hangul and other full-width characters. Messages
up to 90 bytes go out as SMS, anything longer as LMS.
"""

import unicodedata

from smsconnect.core.logging import get_logger
from smsconnect.models.delivery import ChannelType

logger = get_logger(__name__)

SMS_MAX_BYTES = 90
WIDE_CHAR_WEIGHT = 2
_WIDE_CLASSES = frozenset({"W", "F"})


def weighted_width(text: str | bytes) -> int:
    """Return the billable width of ``text``.

    Undecodable input is measured in raw code units instead of failing.
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("Message is not valid UTF-8, counting raw bytes", length=len(text))
            return len(text)

    try:
        return sum(
            WIDE_CHAR_WEIGHT if unicodedata.east_asian_width(char) in _WIDE_CLASSES else 1
            for char in text
        )
    except (TypeError, ValueError):
        return len(text)


def classify(text: str | bytes) -> ChannelType:
    """Classify a message as SMS or LMS."""
    if weighted_width(text) <= SMS_MAX_BYTES:
        return ChannelType.SMS
    return ChannelType.LMS
