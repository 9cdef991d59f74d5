import aiohttp

from bookpath.internal.env_settings import Settings


def create_client_session() -> aiohttp.ClientSession:
    settings = Settings().providers
    # per-provider ceilings are enforced by the fan-out, this only bounds stragglers
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(settings.timeout_seconds * 3),
        headers={"User-Agent": settings.user_agent},
    )
