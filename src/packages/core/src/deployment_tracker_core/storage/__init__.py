"""Local persistence for client state."""
from deployment_tracker_core.storage.sqlite import (
    get_conn,
    init_db,
    read_state,
    write_state,
    delete_state,
)

__all__ = ["get_conn", "init_db", "read_state", "write_state", "delete_state"]
