from threading import Event


class CancellationToken:
    # Cooperative stop signal for the tour improvement loops.
    #
    # The searches check it between moves and return the best tour found
    # so far once it is set. Nothing in the planner sets it by default.

    def __init__(self) -> None:
        self._event = Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def is_cancelled(token) -> bool:
    return token is not None and token.cancelled
