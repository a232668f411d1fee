"""Domain-specific errors for sensorlink."""


class SensorlinkError(Exception):
    """Base error for sensorlink."""


class ProfileValidationError(SensorlinkError):
    """Raised when a profile file does not conform to schema or semantics."""


class ProfileLoadError(SensorlinkError):
    """Raised when loading profile sources fails."""


class ProfileResolutionError(SensorlinkError):
    """Raised when a requested profile id is not loaded."""


class CommandResolutionError(SensorlinkError):
    """Raised when a named command is not defined by the active profile."""


class DeviceDiscoveryError(SensorlinkError):
    """Raised when scanning for advertising peripherals fails."""


class ConnectError(SensorlinkError):
    """Base error for a failed connect() attempt."""


class AlreadyConnected(ConnectError):
    """Raised when connect() is called while a session is active or in flight."""


class DeviceSelectionCancelled(ConnectError):
    """Raised when no device was chosen for the session."""


class ServiceNotFound(ConnectError):
    """Raised when the peripheral does not expose the expected service."""


class CharacteristicNotFound(ConnectError):
    """Raised when a characteristic is missing or lacks a required property."""


class ConnectionLost(ConnectError):
    """Raised when the link drops while a session is being set up."""


class WriteFailed(SensorlinkError):
    """Raised when writing a command to the peripheral fails."""
