"""
Deterministic article IDs.

IDs key bookmarks, shares and comments stored by the site, so the
algorithm reproduces the site's JavaScript hash exactly: a 32-bit
``hash * 31 + code_unit`` over the UTF-16 code units of link + title,
with JavaScript's signed 32-bit wraparound and arithmetic right shifts.

Known limitation: a 32-bit hash over arbitrary strings can collide.
"""
import struct

ID_PREFIX = "51"

# What a JavaScript template literal renders for a missing value
MISSING = "undefined"


def rolling_hash(text: str) -> int:
    """
    32-bit polynomial hash, returned as a signed int like JavaScript's ``hash & hash``.

    Iterates UTF-16 code units so that characters outside the BMP hash
    the same way String.prototype.charCodeAt sees them (as surrogate pairs).
    """
    data = text.encode("utf-16-le", "surrogatepass")
    h = 0
    for (code_unit,) in struct.iter_unpack("<H", data):
        h = (h * 31 + code_unit) & 0xFFFFFFFF

    if h & 0x80000000:
        h -= 0x100000000
    return h


def generate_article_id(link: str, title: str) -> str:
    """
    Generate the article ID for a (link, title) pair.

    Format is ``51-{part1}-{part2}-{part3}-{part4}`` where each part is
    the hex of abs(hash >> n) zero-padded to 8/4/4/12 digits. Padding is a
    minimum width: parts are never truncated, matching padStart.
    A missing (None) link or title hashes as "undefined".
    """
    link = MISSING if link is None else link
    title = MISSING if title is None else title
    h = rolling_hash(f"{link}{title}")

    part1 = format(abs(h), "x").zfill(8)
    part2 = format(abs(h >> 8), "x").zfill(4)
    part3 = format(abs(h >> 16), "x").zfill(4)
    part4 = format(abs(h >> 24), "x").zfill(12)

    return f"{ID_PREFIX}-{part1}-{part2}-{part3}-{part4}"
