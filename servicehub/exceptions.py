"""Application error types mapped to HTTP responses in main.py"""


class ConfigurationError(Exception):
    """Missing or inconsistent environment/schema configuration.

    Raised early with a corrective message instead of letting the remote
    backend fail with an opaque error.
    """


class EmailNotConfiguredError(Exception):
    """Neither Resend nor an SMTP relay is configured"""


class EmailDomainNotVerifiedError(Exception):
    """The sender domain is not verified with the email provider"""


class StorageUnavailableError(Exception):
    """The key/value store holding carts could not be read or written"""
