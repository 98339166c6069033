class ChainError(Exception):
    """Base class for failures talking to the contracts chain."""


class StartupError(ChainError):
    """The node, the ABI or the settings could not be set up. Fatal at boot."""


class TransportError(ChainError):
    """Socket failure, timeout or a response that could not be decoded."""
