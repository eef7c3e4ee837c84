"""External-provider failures shared by the LLM and payments clients."""


class ProviderNotConfigured(Exception):
    """The provider has no credentials; callers should fail fast with a 503."""

    code = "provider_not_configured"


class ProviderError(Exception):
    """The provider was configured but the remote call failed or returned garbage."""

    code = "provider_error"


class NotFoundError(LookupError):
    """A referenced entity does not exist or belongs to another user."""

    code = "not_found"


class PreconditionFailed(Exception):
    """The entity exists but is not in a state that allows the operation."""

    code = "precondition_failed"
