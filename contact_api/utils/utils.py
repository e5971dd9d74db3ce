"""
    **Module Utils**
     - Common Application Utilities**
     - Utilities for commonly performed tasks -
"""
import random
import string
import time
from datetime import datetime, timezone

# NOTE set of characters to use when generating Unique ID suffixes, base 36
_char_set = string.digits + string.ascii_lowercase

_html_escapes = {
    '&': '&amp;',
    '<': '&lt;',
    '>': '&gt;',
    '"': '&quot;',
    "'": '&#39;',
    '`': '&#96;'
}


def to_base36(number: int) -> str:
    if number == 0:
        return '0'
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_char_set[remainder])
    return ''.join(reversed(digits))


def create_id(size: int = 6, chars: str = _char_set) -> str:
    """
        **create_id**
            create a unique id for submission records, the millisecond timestamp
            in base 36 followed by a random suffix

    :param size: length of the random suffix
    :param chars: character set for the random suffix
    :return: id -> timestamp + random suffix
    """
    return to_base36(int(time.time() * 1000)) + ''.join(random.choices(chars, k=size))


def escape_html(unsafe: str | None) -> str:
    """escapes & < > " ' ` so user supplied text can be placed into html"""
    return ''.join(_html_escapes.get(char, char) for char in (unsafe or ''))


def iso_timestamp(moment: datetime | None = None) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. 2024-01-01T10:00:00.000Z"""
    moment = moment or datetime.now(tz=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def get_client_ip(request, trust_proxy: bool = True) -> str:
    """
        will return the address of the client making the request, when behind one trusted proxy
        this is the last hop the proxy appended to x-forwarded-for
    """
    forwarded_for = request.headers.get('x-forwarded-for') if trust_proxy else None
    if forwarded_for:
        hops = [hop.strip() for hop in forwarded_for.split(',') if hop.strip()]
        if hops:
            return hops[-1]
    return request.client.host if request.client else 'unknown'
