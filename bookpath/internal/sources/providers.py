from aiohttp import ClientSession

from bookpath.internal.env_settings import ProviderSettings
from bookpath.internal.sources.abstract import AbstractProvider
from bookpath.internal.sources.google_books_api import GoogleBooksProvider
from bookpath.internal.sources.openlibrary_api import OpenLibraryProvider
from bookpath.util.log import logger

provider_types: dict[str, type[AbstractProvider]] = {
    GoogleBooksProvider.name: GoogleBooksProvider,
    OpenLibraryProvider.name: OpenLibraryProvider,
}


def create_providers(
    client_session: ClientSession,
    settings: ProviderSettings,
) -> list[AbstractProvider]:
    """Instantiates the enabled providers in their configured order."""
    providers: list[AbstractProvider] = []
    for name in settings.enabled:
        Provider = provider_types.get(name)
        if Provider is None:
            logger.warning("Unknown provider in configuration", name=name)
            continue
        providers.append(Provider(client_session, settings))
    logger.debug("Providers registered", providers=[p.name for p in providers])
    return providers
