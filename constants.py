"""Constants for the Nest to Alexa adapter."""

# Alexa namespaces
ALEXA_NAMESPACE = "Alexa"
DISCOVERY_NAMESPACE = "Alexa.Discovery"
POWER_CONTROLLER_NAMESPACE = "Alexa.PowerController"

# Alexa directive names
DISCOVER = "Discover"
TURN_ON = "TurnOn"
TURN_OFF = "TurnOff"
REPORT_STATE = "ReportState"

# Alexa response names
DISCOVER_RESPONSE = "Discover.Response"
RESPONSE = "Response"
STATE_REPORT = "StateReport"
ERROR_RESPONSE = "ErrorResponse"

# Alexa power states
POWER_STATE_ON = "ON"
POWER_STATE_OFF = "OFF"
POWER_STATE_PROPERTY = "powerState"

# Alexa error types
ERROR_INVALID_CREDENTIAL = "INVALID_AUTHORIZATION_CREDENTIAL"
ERROR_NO_SUCH_ENDPOINT = "NO_SUCH_ENDPOINT"
ERROR_RATE_LIMIT = "RATE_LIMIT_EXCEEDED"
ERROR_INTERNAL = "INTERNAL_ERROR"

# Response telemetry
MESSAGE_ID_SUFFIX = "-R"
UNCERTAINTY_IN_MILLISECONDS = 300
SCRUBBED_TOKEN = "scrubbed"

# Discovery
MANUFACTURER_NAME = "Nest Labs"
FRIENDLY_NAME_PREFIX = "Nest"
DISPLAY_CATEGORY = "SWITCH"
INTERFACE_VERSION = "3"

# Nest API
DEFAULT_NEST_API_URL = "https://developer-api.nest.com"
NEST_STRUCTURES_PATH = "structures"
HTTP_OK = 200
HTTP_TEMPORARY_REDIRECT = 307
DEFAULT_MAX_REDIRECTS = 10

# Default configuration paths
DEFAULT_CONFIG_FILE = "nest2alexa.yaml"
CONFIG_FILE_ENV = "NEST2ALEXA_CONFIG"
DEFAULT_LOG_LEVEL = "INFO"
