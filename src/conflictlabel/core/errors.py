from __future__ import annotations


class ConflictLabelError(RuntimeError):
    """Base class for errors that abort a reconciliation pass."""


class ConfigError(ConflictLabelError):
    """Missing or malformed action input."""


class ReconcileError(ConflictLabelError):
    """A label or comment mutation failed for a reason we don't tolerate."""


class UnknownMergeableStateError(ConflictLabelError):
    """GitHub reported a mergeable state this version doesn't understand."""

    def __init__(self, state: str, pr_number: int):
        super().__init__(f"unhandled mergeable state '{state}' on PR #{pr_number}")
        self.state = state
        self.pr_number = pr_number


class GraphQLError(ConflictLabelError):
    """GraphQL endpoint answered 200 but with an `errors` array."""

    def __init__(self, errors: list[dict]):
        messages = "; ".join(error.get("message", "unknown error") for error in errors)
        super().__init__(f"GraphQL query failed: {messages}")
        self.errors = errors
