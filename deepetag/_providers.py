from __future__ import annotations

import abc
import logging
import typing as t

from deepetag._exceptions import ProviderUnavailable

logger = logging.getLogger("deepetag.providers")


class VersionProvider(abc.ABC):
    """
    Knows the current version of the resources identified by a key.

    Implementations may cache internally; the interceptor asks on every
    request and never retries.
    """

    @abc.abstractmethod
    def get_version(self, key: t.Any) -> str | None:
        """Return the current version for ``key``, or ``None`` if unknown."""


class AsyncVersionProvider(abc.ABC):
    @abc.abstractmethod
    async def get_version(self, key: t.Any) -> str | None:
        pass


AnyVersionProvider = t.Union[VersionProvider, AsyncVersionProvider]
ProviderIdentity = t.Union[t.Type[VersionProvider], t.Type[AsyncVersionProvider], str, AnyVersionProvider]


def _is_provider(candidate: t.Any) -> bool:
    return isinstance(candidate, (VersionProvider, AsyncVersionProvider)) or (
        not isinstance(candidate, (type, str)) and callable(getattr(candidate, "get_version", None))
    )


class ProviderRegistry:
    """
    Maps provider identities to live provider instances.

    A provider can be looked up by its class (any registered instance of that
    class or of a subclass, as long as exactly one matches), by the name it was
    registered under, or by passing the instance itself.

    Example:
        ```python
        registry = ProviderRegistry()
        registry.register(ArticleVersions(db), name="articles")

        registry.lookup(ArticleVersions)  # by class
        registry.lookup("articles")  # by name
        ```
    """

    def __init__(self, providers: t.Iterable[AnyVersionProvider] = ()) -> None:
        self._providers: list[AnyVersionProvider] = []
        self._names: dict[str, AnyVersionProvider] = {}
        for provider in providers:
            self.register(provider)

    def register(self, provider: AnyVersionProvider, *, name: str | None = None) -> AnyVersionProvider:
        if not _is_provider(provider):
            raise TypeError(f"{provider!r} does not implement get_version()")

        if not any(existing is provider for existing in self._providers):
            self._providers.append(provider)
        if name is not None:
            self._names[name] = provider

        logger.debug("Registered version provider %s (name=%s)", type(provider).__name__, name)
        return provider

    def unregister(self, identity: ProviderIdentity) -> None:
        provider = self.lookup(identity)
        self._providers = [existing for existing in self._providers if existing is not provider]
        self._names = {name: existing for name, existing in self._names.items() if existing is not provider}

    def lookup(self, identity: ProviderIdentity) -> AnyVersionProvider:
        """
        Resolve ``identity`` to exactly one provider instance.

        Raises:
            ProviderUnavailable: nothing, or more than one provider, matches.
        """
        if isinstance(identity, str):
            try:
                return self._names[identity]
            except KeyError:
                raise ProviderUnavailable(f"No version provider registered under the name {identity!r}") from None

        if isinstance(identity, type):
            matches = [provider for provider in self._providers if isinstance(provider, identity)]
            if not matches:
                raise ProviderUnavailable(f"No version provider of type {identity.__name__} is registered")
            if len(matches) > 1:
                raise ProviderUnavailable(
                    f"Expected a single version provider of type {identity.__name__}, found {len(matches)}"
                )
            return matches[0]

        if _is_provider(identity):
            return identity

        raise ProviderUnavailable(f"{identity!r} is not a valid version provider identity")

    def __contains__(self, identity: t.Any) -> bool:
        try:
            self.lookup(identity)
        except ProviderUnavailable:
            return False
        return True

    def __len__(self) -> int:
        return len(self._providers)


default_registry = ProviderRegistry()
"""Registry used by interceptors and decorators that are not given one."""
