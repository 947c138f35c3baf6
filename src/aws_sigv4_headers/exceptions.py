
class BaseAWSSDKException(Exception):
    """Top-level exception to capture SDK-related errors."""

    ...


class MissingExpectedParameterException(BaseAWSSDKException, ValueError):
    """Some APIs require specific signing properties to be present."""

    ...


class InvalidSigningScopeException(BaseAWSSDKException, ValueError):
    """The credential scope can't be used to derive a signing key."""

    ...


class InvalidCredentialsException(BaseAWSSDKException, ValueError):
    """Credentials are missing, empty or expired."""

    ...
