"""
=============================================================================
ACTION PIPELINE
=============================================================================

An *action* is an object exposing six ordered steps plus a finalizer.
``execute_action`` drives them:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       ACTION EXECUTION                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   before_validate()                                                  │
    │        │  returned None / Step.CONTINUE → next step                 │
    │        ▼                                                             │
    │   validate()                                                         │
    │        │  raised exc ─────────────────────┐                         │
    │        ▼                                  │                         │
    │   after_validate()                        │                         │
    │        │  returned Step.SKIP ─────────┐   │                         │
    │        ▼                              │   │                         │
    │   before_execute()                    │   │                         │
    │        ▼                              │   │                         │
    │   execute()                           │   │                         │
    │        ▼                              │   │                         │
    │   after_execute()                     │   │                         │
    │        │                              │   │                         │
    │        ▼                              ▼   ▼                         │
    │   done(None)                  done(None)  done(exc)                 │
    │        │                                                             │
    │        ▼                                                             │
    │   whatever done() returns is raised; None means success            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
STEP RESULTS
=============================================================================

A step has three possible outcomes:

    CONTINUE   return None (or Step.CONTINUE)
    FAIL       raise an exception
    SKIP       return Step.SKIP: stop here, finalize as a success

``done`` runs exactly once per execution. It receives the failing step's
exception (or None) and returns the exception the pipeline should
propagate. Returning None suppresses a failure; returning a different
exception replaces it.

=============================================================================
EXAMPLE
=============================================================================

    class TransferFunds(NopAction):
        def __init__(self, source, target, amount):
            self.source, self.target, self.amount = source, target, amount

        def validate(self):
            if self.amount <= 0:
                raise ValueError("amount must be positive")

        def before_execute(self):
            if self.amount == 0:
                return Step.SKIP

        def execute(self):
            self.source.move(self.target, self.amount)

        def done(self, exc):
            audit(self, exc)
            return exc

    execute_action(TransferFunds(a, b, 10))

=============================================================================
"""

import enum
import logging
from typing import Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class Step(enum.Enum):
    """Non-exceptional results a pipeline step can return."""

    CONTINUE = "continue"
    SKIP = "skip"


@runtime_checkable
class Action(Protocol):
    """The seven-operation capability set driven by ``execute_action``."""

    def before_validate(self) -> Optional[Step]: ...

    def validate(self) -> Optional[Step]: ...

    def after_validate(self) -> Optional[Step]: ...

    def before_execute(self) -> Optional[Step]: ...

    def execute(self) -> Optional[Step]: ...

    def after_execute(self) -> Optional[Step]: ...

    def done(self, exc: Optional[Exception]) -> Optional[Exception]: ...


# Execution order of the ordered steps
ACTION_STEPS = (
    "before_validate",
    "validate",
    "after_validate",
    "before_execute",
    "execute",
    "after_execute",
)


class NopAction:
    """
    Action whose every step does nothing.

    Subclass it and override only the steps you need. ``done`` passes the
    exception through unchanged.
    """

    def before_validate(self) -> Optional[Step]:
        return None

    def validate(self) -> Optional[Step]:
        return None

    def after_validate(self) -> Optional[Step]:
        return None

    def before_execute(self) -> Optional[Step]:
        return None

    def execute(self) -> Optional[Step]:
        return None

    def after_execute(self) -> Optional[Step]:
        return None

    def done(self, exc: Optional[Exception]) -> Optional[Exception]:
        return exc


def run_action_steps(action: Action) -> Optional[Exception]:
    """
    Run the six ordered steps of ``action`` and return the finalizer input.

    Returns:
        The exception raised by the first failing step, or None when
        every step succeeded or one of them returned ``Step.SKIP``.
        A step returning anything else counts as failed with a
        ``TypeError``.
    """
    for name in ACTION_STEPS:
        try:
            result = getattr(action, name)()
        except Exception as exc:
            logger.debug(f"{type(action).__name__}.{name} failed: {exc!r}")
            return exc

        if result is Step.SKIP:
            logger.debug(f"{type(action).__name__}.{name} skipped to done")
            return None
        if result is not None and result is not Step.CONTINUE:
            return TypeError(
                f"{type(action).__name__}.{name} returned {result!r}; "
                "expected None, Step.CONTINUE or Step.SKIP"
            )
    return None


def execute_action(action: Action) -> None:
    """
    Execute ``action`` and finalize it.

    Calls ``action.done`` exactly once with the outcome of the ordered
    steps, then raises whatever ``done`` returned.

    Raises:
        Exception: The exception returned by ``done``.
    """
    outcome = run_action_steps(action)
    final = action.done(outcome)
    if final is not None:
        raise final
