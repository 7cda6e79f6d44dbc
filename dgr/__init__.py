from dgr.config import DGRSettings
from dgr.exceptions import DGRException, FatalReplicationError
from dgr.session import Session

__all__ = ["DGRSettings", "DGRException", "FatalReplicationError", "Session"]
