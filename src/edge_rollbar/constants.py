"""Constants shared across the notifier."""

# Collector endpoint for server-side items
ROLLBAR_API_URL = "https://api.rollbar.com/api/1/item/"

# Notifier identity stamped on every payload
NOTIFIER_NAME = "edge-rollbar"
NOTIFIER_VERSION = "0.1.0"

# Host runtime family descriptors
PLATFORM = "serverless"
LANGUAGE = "python"

DEFAULT_ENVIRONMENT = "production"


# Log event names following the pattern: {domain}.{action}.{result}
class LogEvents:
    """Standardized log event names."""

    PAYLOAD_SENDING = "rollbar.payload.sending"
    PAYLOAD_FAILED = "rollbar.payload.failed"
    RESPONSE_RECEIVED = "rollbar.response.received"
    SEND_FAILED = "rollbar.send.failed"
    SEND_REJECTED = "rollbar.send.rejected"
    REPORT_SCHEDULED = "rollbar.report.scheduled"
    HANDLER_FAILED = "rollbar.handler.failed"


# Fields scrubbed from custom data, request bodies and the default payload
DEFAULT_SCRUB_FIELDS = (
    "password",
    "secret",
    "token",
    "accessToken",
    "access_token",
    "apiKey",
    "api_key",
    "credential",
)

# Header name fragments that are always scrubbed (substring match)
DEFAULT_SCRUB_HEADERS = (
    "authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
    "x-auth-token",
)

# Replacement markers
SCRUBBED_VALUE = "[SCRUBBED]"
CIRCULAR_REFERENCE_VALUE = "[Circular Reference]"
MAX_DEPTH_VALUE = "[Max Depth Exceeded]"

# Containers nested deeper than this are replaced with MAX_DEPTH_VALUE
MAX_SCRUB_DEPTH = 100

# Placeholder frames
NO_STACK_FILENAME = "(no stack trace)"
UNPARSED_FILENAME = "(unparsed)"
ANONYMOUS_METHOD = "(anonymous)"
DEFAULT_ERROR_KIND = "Error"

# Headers consulted for the client IP, in order
CLIENT_IP_HEADER = "cf-connecting-ip"
FORWARDED_FOR_HEADER = "x-forwarded-for"
REAL_IP_HEADER = "x-real-ip"

GENERIC_ERROR_MESSAGE = "Internal Server Error"
