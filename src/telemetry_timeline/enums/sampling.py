from enum import Enum


class ChannelKind(str, Enum):
    """Kinds of telemetry channels."""
    ANALOG = "analog"
    DIGITAL = "digital"


class ViewResolution(str, Enum):
    """Sampling cadences a payload can be viewed at."""
    SECOND = "second"
    MINUTE = "minute"


class DecimationMethod(str, Enum):
    """Decimation methods for analog series."""
    ENVELOPE = "envelope"
    LTTB = "lttb"
