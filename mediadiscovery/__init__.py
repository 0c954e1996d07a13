"""
MediaDiscovery - Hybrid retrieval and ranking for natural-language content search.

Example:
    >>> from mediadiscovery.domains.search import HybridSearchService, SearchRequest
    >>> service = HybridSearchService(intent_parser, vector_backend, keyword_backend)
    >>> response = await service.search(SearchRequest(query="cozy mysteries on netflix"))
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
