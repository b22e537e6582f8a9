"""Ordered, failure-aware teardown of pipeline stages."""

from collections.abc import Callable

from .errors import CacherError

Closer = Callable[[bool], None]


def fold_close_error(
    error: BaseException | None,
    close_error: BaseException,
    stage: str,
    error_type: type[CacherError] = CacherError,
) -> BaseException:
    """Combine a teardown failure with the outcome of the pipeline body.

    If the body already failed, the close failure is attached to the original
    error as a note and the original stays the one raised. Otherwise the close
    failure becomes the outcome; failures from outside the domain taxonomy are
    wrapped in ``error_type`` naming the stage.
    """
    if error is not None:
        error.add_note(f"failed to close {stage}: {close_error}")
        return error
    if isinstance(close_error, CacherError):
        close_error.add_note(f"failed to close {stage}")
        return close_error
    wrapped = error_type(f"failed to close {stage}: {close_error}")
    wrapped.__cause__ = close_error
    return wrapped


def describe_error(error: BaseException) -> str:
    """Render an error together with any teardown failures folded into it."""
    notes = getattr(error, "__notes__", [])
    return ": ".join([str(error), *notes])


class CloseStack:
    """Stack of stage closers run in reverse acquisition order.

    Each closer receives ``ok``: True when nothing has failed so far, so a
    writer can decide between publishing and discarding.
    """

    def __init__(self) -> None:
        self._closers: list[tuple[str, Closer, type[CacherError]]] = []

    def push(
        self, stage: str, closer: Closer, error_type: type[CacherError] = CacherError
    ) -> None:
        self._closers.append((stage, closer, error_type))

    def unwind(self, error: BaseException | None = None) -> BaseException | None:
        """Run every closer and return the folded outcome."""
        while self._closers:
            stage, closer, error_type = self._closers.pop()
            try:
                closer(error is None)
            except Exception as e:
                error = fold_close_error(error, e, stage, error_type)
        return error
