"""Checkers for the ``format`` keyword.

A checker is called as ``checker(instance, schema)`` and returns None when the
value is acceptable, or a description string when it is not. Built-in
checkers accept any non-string instance; ``type`` is responsible for that.
"""

import datetime
import ipaddress
import re
from typing import Any, Callable, Dict, List, Optional

from jsonsvalidator.common import compile_ecma_regex

FormatChecker = Callable[[Any, Dict[str, Any]], Optional[str]]

BUILTIN_FORMATS: Dict[str, FormatChecker] = {}

# RFC 3339 section 5.6
DATETIME_PATTERN = re.compile(
    r'^(\d{4})-(\d{2})-(\d{2})[Tt ](\d{2}):(\d{2}):(\d{2})(\.\d+)?([Zz]|[+-](\d{2}):(\d{2}))$'
)
EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+$')
HOSTNAME_LABEL_PATTERN = re.compile(r'^[A-Za-z0-9]([A-Za-z0-9\-]{0,61}[A-Za-z0-9])?$')
URI_PATTERN = re.compile(r'^[A-Za-z][A-Za-z0-9+.\-]*:[^\s]*$')


def _builtin(name: str):
    def wrap(func: FormatChecker) -> FormatChecker:
        BUILTIN_FORMATS[name] = func
        return func
    return wrap


@_builtin('date-time')
def check_date_time(instance: Any, schema: Dict[str, Any]) -> Optional[str]:
    if not isinstance(instance, str):
        return None
    match = DATETIME_PATTERN.match(instance)
    if not match:
        return 'not a valid date-time per RFC 3339'
    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    try:
        datetime.date(year, month, day)
    except ValueError:
        return 'not a valid date-time per RFC 3339 (invalid date)'
    # second 60 is a leap second
    if hour > 23 or minute > 59 or second > 60:
        return 'not a valid date-time per RFC 3339 (invalid time)'
    if match.group(9) is not None and (int(match.group(9)) > 23 or int(match.group(10)) > 59):
        return 'not a valid date-time per RFC 3339 (invalid offset)'
    return None


@_builtin('email')
def check_email(instance: Any, schema: Dict[str, Any]) -> Optional[str]:
    if not isinstance(instance, str):
        return None
    if not EMAIL_PATTERN.match(instance):
        return 'not a valid email address'
    return None


@_builtin('hostname')
def check_hostname(instance: Any, schema: Dict[str, Any]) -> Optional[str]:
    if not isinstance(instance, str):
        return None
    if not instance or len(instance) > 255:
        return 'not a valid hostname'
    if not all(HOSTNAME_LABEL_PATTERN.match(label) for label in instance.split('.')):
        return 'not a valid hostname'
    return None


@_builtin('ipv4')
def check_ipv4(instance: Any, schema: Dict[str, Any]) -> Optional[str]:
    if not isinstance(instance, str):
        return None
    try:
        ipaddress.IPv4Address(instance)
    except ValueError:
        return 'not a valid IPv4 address'
    return None


@_builtin('ipv6')
def check_ipv6(instance: Any, schema: Dict[str, Any]) -> Optional[str]:
    if not isinstance(instance, str):
        return None
    try:
        ipaddress.IPv6Address(instance)
    except ValueError:
        return 'not a valid IPv6 address'
    return None


@_builtin('uri')
def check_uri(instance: Any, schema: Dict[str, Any]) -> Optional[str]:
    if not isinstance(instance, str):
        return None
    if not URI_PATTERN.match(instance):
        return 'not a valid URI'
    return None


@_builtin('regex')
def check_regex(instance: Any, schema: Dict[str, Any]) -> Optional[str]:
    if not isinstance(instance, str):
        return None
    try:
        compile_ecma_regex(instance)
    except re.error as e:
        return f'not a valid regular expression: {e}'
    return None


class FormatRegistry:
    """Maps format names to checkers. Seeded with the built-ins."""

    def __init__(self, include_builtins: bool = True) -> None:
        self._checkers: Dict[str, FormatChecker] = dict(BUILTIN_FORMATS) if include_builtins else {}

    def add_format(self, name: str, checker: FormatChecker) -> None:
        """Registers a checker, replacing any existing one of the same name."""
        if not callable(checker):
            raise TypeError(f"format checker for '{name}' must be callable")
        self._checkers[name] = checker

    def get(self, name: str) -> Optional[FormatChecker]:
        return self._checkers.get(name)

    def names(self) -> List[str]:
        return sorted(self._checkers)

    def __contains__(self, name: object) -> bool:
        return name in self._checkers
