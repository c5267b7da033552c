"""Constants for smarthome_panel."""

# Default server URL (the panel is normally served by the backend itself)
DEFAULT_SERVER_URL = "http://localhost:8080"

# Every endpoint lives under this path
API_BASE = "/api"

# API Endpoints
DEVICES_ENDPOINT = "/devices"
STATUS_ENDPOINT = "/status"
MODE_ENDPOINT = "/mode/{mode}"
DEVICE_CONTROL_ENDPOINT = "/devices/{deviceId}/control"
ROOM_CONTROL_ENDPOINT = "/patterns/composite/rooms/{roomId}/control"
SCENE_ENDPOINT = "/patterns/facade/scene/{sceneName}"
PATTERNS_ENDPOINT = "/patterns"

# Response decoding
JSON_CONTENT_TYPE = "application/json"
DEFAULT_ERROR_MESSAGE = "Request failed"

# Separator used for multi-valued parameters and form fields
MULTI_VALUE_SEPARATOR = ","

# Characters encodeURIComponent leaves untouched (besides alphanumerics and "_.-~")
URI_COMPONENT_SAFE = "!*'()"

# Role markers, in dispatch priority order
DEVICE_CONTROL_SELECTOR = ".device-control-btn"
ROOM_CONTROL_SELECTOR = ".room-control-btn"
MODE_SELECTOR = ".mode-btn"
SCENE_SELECTOR = ".scene-btn"
PATTERN_RUN_SELECTOR = ".pattern-run-btn"
PATTERN_LIST_ITEM_SELECTOR = ".pattern-list-item"
API_FORM_SELECTOR = "form[data-api-endpoint]"

# Dataset keys (camelCase, as read from data-* attributes)
DATA_DEVICE_ID = "deviceId"
DATA_ACTION = "action"
DATA_ROOM = "room"
DATA_MODE = "mode"
DATA_SCENE = "scene"
DATA_PATTERN = "pattern"
DATA_API_ENDPOINT = "apiEndpoint"
DATA_API_METHOD = "apiMethod"
DATA_REFRESH = "refresh"

DEFAULT_FORM_METHOD = "GET"

# Synchronization targets
DEVICE_CARD_ATTRIBUTE = "data-device-id"
DEVICE_STATUS_SELECTOR = ".device-status"
POWER_VALUE_SELECTOR = ".power-indicator .value"
STATUS_ON_CLASS = "status-on"
STATUS_OFF_CLASS = "status-off"
STATUS_ON_LABEL = "ON"
STATUS_OFF_LABEL = "OFF"

# Page element ids
OUTPUT_ELEMENT_ID = "output"
ACTIVE_DEVICES_ELEMENT_ID = "activeDevices"
HOME_MODE_ELEMENT_ID = "homeMode"
RESULT_ELEMENT_SUFFIX = "-result"
PATTERN_SECTION_SELECTOR = ".pattern-section"

# Event types
CLICK_EVENT = "click"
SUBMIT_EVENT = "submit"
RELOAD_EVENT = "reload"

UI_LOADED_MESSAGE = "UI loaded. Open the Patterns Lab to run all demos."
