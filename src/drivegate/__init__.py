"""DriveGate - OAuth gateway brokering Google Drive access for many tenants."""

__version__ = "0.3.0"
