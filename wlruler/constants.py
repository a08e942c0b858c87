"""Project-wide constants and compiled regular expressions used by wlruler.

These values define the rule flag table, the reserved local hostnames that
are never IDNA-encoded, the upstream extension feeds, and the defaults used
by the command-line front end. The module is stdlib-only.
"""

from re import compile as re_compile
from sys import version

HTTP_PREFIXES = ("http://", "https://")
COMPLEMENT_PREFIX = "www."
COMMENT_CHAR = "#"
TAB = "\t"
SPACE = " "

FLAG_SEPARATORS = (" ", ":", "#", ",", "@")
FLAG_ALL_TOKENS = ("ALL",)
FLAG_REG_TOKENS = ("REG",)
FLAG_RZDB_TOKENS = ("RZD", "RZDB")
CANONICAL_FLAG_SEPARATOR = "@"

STRICT_KEY_LENGTH = 4
ENDS_KEY_LENGTH = 3

RESERVED_HOSTS_RE = re_compile(
    r"(?:localhost|localdomain|local|broadcasthost|0\.0\.0\.0|allhosts"
    r"|allnodes|allrouters|localnet|loopback|mcastprefix)$"
)
INLINE_FLAGS_RE = re_compile(r"\(\?([imsx]+)\)")

ROOT_ZONE_DB_URL = (
    "https://raw.githubusercontent.com/PyFunceble/iana/master/iana-domains-db.json"
)
PUBLIC_SUFFIX_DB_URL = (
    "https://raw.githubusercontent.com/PyFunceble/public-suffix/master/public-suffix.json"
)

VERSION = "1.0.0"
USER_AGENT = f"wlruler/{VERSION} Python/" + version.split()[0]
FETCH_TIMEOUT = 30.0
FETCH_WORKERS = 16

LOG_LEVELS = ("debug", "info", "warn", "error")
DEFAULT_LOG_LEVEL = "error"
