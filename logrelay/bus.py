"""
D-Bus connection helper shared by the publisher and subscriber.
"""

from jeepney.io.blocking import DBusConnection, open_dbus_connection

from logrelay.errors import BusUnavailable
from logrelay.logging_config import get_logger

logger = get_logger(__name__)

SESSION_BUS = "SESSION"
SYSTEM_BUS = "SYSTEM"


def connect(bus: str = SESSION_BUS) -> DBusConnection:
    """
    Open a blocking connection to a message bus.

    Args:
        bus: "SESSION", "SYSTEM" or an explicit D-Bus address such as
            "unix:path=/run/user/1000/bus"

    Returns:
        An authenticated connection that has completed the Hello handshake

    Raises:
        BusUnavailable: If the bus address is unknown or unreachable
    """
    try:
        conn = open_dbus_connection(bus=bus)
    except KeyError as e:
        # jeepney looks the session address up in the environment
        raise BusUnavailable(f"No address known for the {bus} bus ({e} is not set)") from e
    except (OSError, ValueError) as e:
        # jeepney authentication failures are ValueErrors
        raise BusUnavailable(f"D-Bus connection error on {bus} bus: {e}") from e

    logger.debug("Connected to %s bus as %s", bus, conn.unique_name)
    return conn
