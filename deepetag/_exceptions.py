__all__ = (
    "EtagError",
    "NoActiveRequestContext",
    "KeyResolutionFailure",
    "KeyExpressionError",
    "ProviderUnavailable",
    "ProviderError",
)


class EtagError(Exception): ...


class NoActiveRequestContext(EtagError): ...


class KeyResolutionFailure(EtagError): ...


class KeyExpressionError(KeyResolutionFailure): ...


class ProviderUnavailable(EtagError): ...


class ProviderError(EtagError): ...
