"""Internal constants shared across the library."""

USER_AGENT = "pyufo/0.1"

#: Control byte separating diagnostic text from the JSON instruction array.
REPLY_SEPARATOR = "\x02"

CACHE_BUST_PARAM = "ufo"
CACHE_BUST_MIN = 1_000_000
CACHE_BUST_MAX = 9_999_998

#: Non-success HTTP statuses that fire a callback point instead of decoding.
STATUS_CALLBACK_POINTS: dict[int, str] = {403: "forbidden"}

SUCCESS_STATUS = 200

#: Poll jitter factor range, drawn uniformly and multiplied with the interval.
POLL_JITTER: tuple[float, float] = (0.5, 1.25)

#: Seconds to wait before the single retry of a missing ``output`` target.
OUTPUT_RETRY_DELAY = 0.1

# ------------------------------------------------------------------
# Callback points fired by the engine
# ------------------------------------------------------------------

POINT_GET = "get"
POINT_POST = "post"
POINT_UPDATE = "update"
POINT_REPLY = "reply"
POINT_ABORT = "abort"
POINT_INNER = "inner"

#: Localisation key in the data store.
LN_KEY = "ln"
