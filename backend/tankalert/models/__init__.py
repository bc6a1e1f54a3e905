from tankalert.models.location import Location
from tankalert.models.asset import Asset
from tankalert.models.reading import Reading
from tankalert.models.alert import Alert, AlertType, AlertSeverity
from tankalert.models.sync_log import SyncLog

__all__ = [
    "Location",
    "Asset",
    "Reading",
    "Alert",
    "AlertType",
    "AlertSeverity",
    "SyncLog",
]
