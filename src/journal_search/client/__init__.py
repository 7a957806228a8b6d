from journal_search.client.search_controller import (
    ControllerPhase,
    SearchController,
    SearchRequestError,
    SearchState,
)

__all__ = ["ControllerPhase", "SearchController", "SearchRequestError", "SearchState"]
