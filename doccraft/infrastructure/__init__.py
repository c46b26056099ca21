"""Infrastructure layer exports."""

from .generative import (
    GenerativeService,
    GenerativeServiceError,
    UnconfiguredGenerativeService,
    configure_generative_service,
    get_generative_service,
)
from .github import GitHubContentFetcher, GitHubFetchError, configure_github_fetcher, get_github_fetcher
from .history import HistoryStorage, HistoryStore, InMemoryHistoryStorage, JsonFileHistoryStorage

__all__ = [
    "GenerativeService",
    "GenerativeServiceError",
    "UnconfiguredGenerativeService",
    "configure_generative_service",
    "get_generative_service",
    "GitHubContentFetcher",
    "GitHubFetchError",
    "configure_github_fetcher",
    "get_github_fetcher",
    "HistoryStorage",
    "HistoryStore",
    "InMemoryHistoryStorage",
    "JsonFileHistoryStorage",
]
