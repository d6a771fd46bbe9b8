import os

# ------------------ LOGGING ------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# ------------------ MQTT (phone <- remote commands) ------------------
MQTT_HOST = os.getenv("MQTT_HOST", "localhost")
MQTT_PORT = int(os.getenv("MQTT_PORT", "1883"))
MQTT_USERNAME = os.getenv("MQTT_USERNAME") or None
MQTT_PASSWORD = os.getenv("MQTT_PASSWORD") or None
MQTT_TLS = _env_bool("MQTT_TLS", False)
MQTT_KEEPALIVE = int(os.getenv("MQTT_KEEPALIVE", "60"))
MQTT_QOS = int(os.getenv("MQTT_QOS", "0"))

VIBRATION_TOPIC = os.getenv("VIBRATION_TOPIC", "Output/Vibration")
DIRECTION_TOPIC = os.getenv("DIRECTION_TOPIC", "Output/Direction")
COMMAND_TOPIC = os.getenv("COMMAND_TOPIC", "Command/Haptic")

# Fixed delay, no backoff
RECONNECT_DELAY_S = float(os.getenv("RECONNECT_DELAY_S", "3"))

# ------------------ PEER CHANNEL (phone -> wearable) ------------------
PEER_MQTT_HOST = os.getenv("PEER_MQTT_HOST", MQTT_HOST)
PEER_MQTT_PORT = int(os.getenv("PEER_MQTT_PORT", str(MQTT_PORT)))
PEER_TOPIC_PREFIX = os.getenv("PEER_TOPIC_PREFIX", "wear")

# ------------------ WEBSOCKET (secondary stream) ------------------
# Used when a connect control message carries no "data" URL
WEBSOCKET_URL = os.getenv("WEBSOCKET_URL") or None
WEBSOCKET_TOPIC = "websocket"

# ------------------ STATUS API ------------------
STATUS_API_HOST = os.getenv("STATUS_API_HOST", "0.0.0.0")
STATUS_API_PORT = int(os.getenv("STATUS_API_PORT", "8080"))  # 0 disables

# Phone "Vibrate" button defaults
DEFAULT_AMPLITUDE = 150
DEFAULT_RATIO = 70.0

# ------------------ WEARABLE ------------------
WEAR_NODE_ID = os.getenv("WEAR_NODE_ID", "watch-1")
PULSE_POLICY = os.getenv("PULSE_POLICY", "proportional")  # or "threshold"
PULSE_CYCLE_MS = int(os.getenv("PULSE_CYCLE_MS", "1000"))
PULSE_RESTART_ON_UPDATE = _env_bool("PULSE_RESTART_ON_UPDATE", True)
