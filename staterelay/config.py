"""Central configuration: network, channel, relay behaviour, logging."""
import os

# ── Environment ───────────────────────────────────────────────────────────────
ENV = os.environ.get("RELAY_ENV", "dev")

# ── Network ───────────────────────────────────────────────────────────────────
HOST = os.environ.get("RELAY_HOST", "0.0.0.0")
# Numeric settings stay strings here; RelaySettings coerces and validates them.
PORT = os.environ.get("RELAY_PORT", "3000")

# Origins allowed outside of dev; dev allows any origin.
CORS_ORIGINS = [
    o.strip()
    for o in os.environ.get(
        "RELAY_CORS_ORIGINS", "https://sovereign-chess-demo.web.app"
    ).split(",")
    if o.strip()
]

# ── Channel ───────────────────────────────────────────────────────────────────
CHANNEL = os.environ.get("RELAY_CHANNEL", "game-0")

# Sovereign chess starting position, sent until the first update arrives.
INITIAL_FEN = (
    "aqabvrvnbrbnbbbqbkbbbnbrynyrsbsq/aranvpvpbpbpbpbpbpbpbpbpypypsnsr/"
    "nbnp12opob/nqnp12opoq/crcp12rprr/cncp12rprn/gbgp12pppb/gqgp12pppq/"
    "yqyp12vpvq/ybyp12vpvb/onop12npnn/orop12npnr/rqrp12cpcq/rbrp12cpcb/"
    "srsnppppwpwpwpwpwpwpwpwpgpgpanar/sqsbprpnwrwnwbwqwkwbwnwrgngrabaq"
)
INITIAL_STATE = os.environ.get("RELAY_INITIAL_STATE", INITIAL_FEN)

# ── Relay behaviour ───────────────────────────────────────────────────────────
# "broadcast" → fan out to everyone but the sender
# "ack"       → reply "Ack: <payload>" to the sender only
RELAY_MODE = os.environ.get("RELAY_MODE", "broadcast")

MAX_PAYLOAD_BYTES = os.environ.get("RELAY_MAX_PAYLOAD_BYTES", "65536")  # 0 = unlimited
ACK_PREFIX = "Ack: "

# ── Logging ───────────────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("RELAY_LOG_LEVEL", "info")
