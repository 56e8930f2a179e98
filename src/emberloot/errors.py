class EmberlootError(Exception):
    """Base class for errors raised by the persistence and configuration layers."""


class ConfigError(EmberlootError):
    pass


class RngStateError(EmberlootError):
    pass


class RngStateDecodeError(RngStateError):
    pass


__all__ = ["ConfigError", "EmberlootError", "RngStateDecodeError", "RngStateError"]
