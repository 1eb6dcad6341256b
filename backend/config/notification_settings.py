# This module defines notification delivery settings as module-level constants.
# Values come from the environment (a local .env file is loaded first) so the
# same code runs against staging and production providers.

import os

from dotenv import load_dotenv

load_dotenv()

# Sender used for every notification email
NOTIFICATION_FROM_EMAIL = os.getenv(
    "NOTIFICATION_FROM_EMAIL", "OpenCouncil <notifications@opencouncil.gr>"
)

# Frontend base URL for links in notification bodies
FRONTEND_BASE_URL = os.getenv("FRONTEND_BASE_URL", "https://opencouncil.gr")

# Bird messaging API (WhatsApp templates with SMS fallback)
BIRD_API_BASE_URL = os.getenv("BIRD_API_BASE_URL", "https://api.bird.com")
BIRD_API_KEY = os.getenv("BIRD_API_KEY")
BIRD_WORKSPACE_ID = os.getenv("BIRD_WORKSPACE_ID")
BIRD_WHATSAPP_CHANNEL_ID = os.getenv("BIRD_WHATSAPP_CHANNEL_ID")
BIRD_SMS_CHANNEL_ID = os.getenv("BIRD_SMS_CHANNEL_ID")

# Pre-approved WhatsApp template project per notification type
BIRD_WHATSAPP_TEMPLATES = {
    "beforeMeeting": os.getenv("BIRD_WHATSAPP_TEMPLATE_BEFORE_MEETING"),
    "afterMeeting": os.getenv("BIRD_WHATSAPP_TEMPLATE_AFTER_MEETING"),
}
BIRD_TEMPLATE_LOCALE = "el"

# Discord webhook for admin alerts about created and sent notifications
ADMIN_ALERT_WEBHOOK_URL = os.getenv("ADMIN_ALERT_WEBHOOK_URL")

# Upper bound for any single provider call (email, WhatsApp or SMS)
PROVIDER_TIMEOUT_SECONDS = float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "30"))

# Bird HTTP (connect, read) timeouts; together they stay inside
# PROVIDER_TIMEOUT_SECONDS so an abandoned request is cut off by requests itself
BIRD_CONNECT_TIMEOUT_SECONDS = PROVIDER_TIMEOUT_SECONDS * 0.2
BIRD_READ_TIMEOUT_SECONDS = PROVIDER_TIMEOUT_SECONDS * 0.6

# Worker pools
DELIVERY_MAX_WORKERS = int(os.getenv("DELIVERY_MAX_WORKERS", "4"))
PROXIMITY_MAX_WORKERS = int(os.getenv("PROXIMITY_MAX_WORKERS", "8"))

# Pause after each delivery: ~2 requests/second per worker
DELIVERY_RATE_LIMIT_SECONDS = float(os.getenv("DELIVERY_RATE_LIMIT_SECONDS", "0.5"))

# Proximity thresholds in meters
PROXIMITY_DISTANCE_METERS = {
    "near": 250,
    "wide": 1000,
}

# Defaults used when a meeting has no administrative body
DEFAULT_ADMIN_BODY_NAME = "Συνεδρίαση"

# WhatsApp templates list at most this many subject names
TEMPLATE_SUBJECT_LIMIT = 3
