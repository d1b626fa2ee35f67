"""Exception hierarchy for the replay pipeline."""


class VltError(Exception):
    """Base class for all replay errors."""


class StreamError(VltError):
    """The log stream could not be started or read. Fatal to the process."""


class ConfigError(VltError):
    """Invalid configuration value or unreadable config file."""


class MalformedHeader(VltError, ValueError):
    """A header line without a ``Name: Value`` separator."""


class TranslationError(VltError, ValueError):
    """A completed record could not be turned into an outbound request."""


class MalformedPath(TranslationError):
    pass


class UnknownScheme(TranslationError):
    pass


class UnknownProtocol(TranslationError):
    pass


class MalformedRequest(TranslationError):
    pass
