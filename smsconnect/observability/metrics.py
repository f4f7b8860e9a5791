"""Prometheus metrics definitions."""

from prometheus_client import Counter

# Event metrics
EVENTS_RECEIVED = Counter(
    "smsconnect_events_received_total",
    "Total number of notification events received",
    ["kind"],
)

RULES_MATCHED = Counter(
    "smsconnect_rules_matched_total",
    "Total number of order events routed by an advanced rule",
)

# Delivery metrics
NOTIFICATIONS_SENT = Counter(
    "smsconnect_notifications_sent_total",
    "Total send attempts by message type and outcome",
    ["channel", "status"],
)

LOW_BALANCE_ALERTS = Counter(
    "smsconnect_low_balance_alerts_total",
    "Total low balance alerts sent to admins",
)
