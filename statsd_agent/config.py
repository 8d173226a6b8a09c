import os
import socket

# ================= STATSD =================
STATSD_HOST = os.getenv("STATSD_HOST", "192.168.1.128")
STATSD_PORT = int(os.getenv("STATSD_PORT", "8125"))
# prefix understood by statsd-opentsdb-backend
TAG_PREFIX = os.getenv("TAG_PREFIX", "_t_")
MAX_DATAGRAM_SIZE = int(os.getenv("MAX_DATAGRAM_SIZE", "1432"))

# ================= AGENT =================
NODE_ID = os.getenv("NODE_ID", socket.gethostname())
INTERVAL = float(os.getenv("INTERVAL", "1"))
DEBUG = os.getenv("DEBUG", "false").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ================= LATENCY =================
LATENCY_HOST = os.getenv("LATENCY_HOST", "8.8.8.8")
LATENCY_PORT = int(os.getenv("LATENCY_PORT", "53"))
LATENCY_TIMEOUT = float(os.getenv("LATENCY_TIMEOUT", "5"))

# ================= SERVICE =================
SERVICE_NAME = os.getenv("SERVICE_NAME", "statsd-agent")
UNIT_DIR = os.getenv("UNIT_DIR", "/etc/systemd/system")
