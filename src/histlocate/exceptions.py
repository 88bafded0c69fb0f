"""Error types raised by the localization pipeline."""


class FormatError(ValueError):
    """Decoded input failed structural validation (image or template file)."""


class ChannelRangeError(FormatError):
    """A channel value fell outside ``[0, max_color]``."""


class ConfigurationError(ValueError):
    """The pipeline was configured in a way that cannot produce a result.

    Raised for an empty template store and for signatures or template files
    whose bin count does not match the active configuration.
    """
