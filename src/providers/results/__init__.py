"""Race-results providers.

WebScorerProvider implements IResultsProvider (src/interfaces/results_provider.py)
against WebScorer's JSON API; normalize_results converts its documents into
the provider-independent view served by the public API.
"""

from src.providers.results.webscorer_provider import WebScorerProvider, normalize_results

__all__ = ["WebScorerProvider", "normalize_results"]
