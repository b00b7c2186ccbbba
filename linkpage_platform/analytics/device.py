"""
Device classification for recorded events.

The rule is a plain case-sensitive substring check against a few tokens that
appear in mobile browser user agents. It runs once, when an event is recorded;
stored events keep the device type they were given even if this rule changes.
"""

from typing import Optional

from .models import DeviceType

MOBILE_TOKENS = ("Mobile", "Android", "iPhone", "iPad")


def classify_device(signature: Optional[str]) -> DeviceType:
    """
    Classify a client signature (user agent) as mobile or desktop.

    Matching is case-sensitive: "Android" is mobile, "android" is not.

    >>> classify_device("Mozilla/5.0 (Linux; Android 10)")
    <DeviceType.MOBILE: 'mobile'>
    >>> classify_device("Mozilla/5.0 (Windows NT 10.0)")
    <DeviceType.DESKTOP: 'desktop'>
    """
    if signature and any(token in signature for token in MOBILE_TOKENS):
        return DeviceType.MOBILE
    return DeviceType.DESKTOP
