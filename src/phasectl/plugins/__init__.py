"""Extension layer: lifecycle hooks via pluggy.

Discovery: entry points in the ``phasectl.plugins`` group plus single-file
plugins in ``{data_dir}/plugins/``.
INVARIANT: Plugin failures are warnings, never errors.
"""

from phasectl.plugins.event_bus import EventBus
from phasectl.plugins.manager import PluginManager

__all__ = ["EventBus", "PluginManager"]
