"""miniappruntime.integrations

External collaborators consumed by the engine: host capabilities (clipboard,
geolocation, battery, notifications, chat) and the outbound HTTP proxy.
"""

from .host import (
    NOTIFICATION_DEFAULT,
    NOTIFICATION_DENIED,
    NOTIFICATION_GRANTED,
    BatteryStatus,
    HeadlessHost,
    HostCapabilities,
    Position,
)
from .http_proxy import (
    HttpProxy,
    HttpxProxy,
    ProxyRequest,
    ProxyResponse,
    RemoteHttpProxy,
    extract_json_path,
    is_blocked_url,
)

__all__ = [
    "HostCapabilities",
    "HeadlessHost",
    "Position",
    "BatteryStatus",
    "NOTIFICATION_GRANTED",
    "NOTIFICATION_DENIED",
    "NOTIFICATION_DEFAULT",
    "HttpProxy",
    "HttpxProxy",
    "RemoteHttpProxy",
    "ProxyRequest",
    "ProxyResponse",
    "extract_json_path",
    "is_blocked_url",
]
