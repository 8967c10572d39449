class IntelligenceError(Exception):
    """Base class for failures in the generation flow."""


class InputMissingError(IntelligenceError):
    """No usable text or attachment was supplied for the selected mode."""

    def __init__(self, message: str = "Please provide some text, an image, or a document to analyze."):
        super().__init__(message)


class GenerationFailedError(IntelligenceError):
    """
    The generation service returned nothing usable.

    `kind` is "empty-output" when the model returned no output at all, and
    "invalid-output" when it answered with something that does not fit the
    mode's result schema.
    """

    def __init__(self, mode: str, kind: str = "empty-output", detail: str = ""):
        self.mode = mode
        self.kind = kind
        self.detail = detail
        super().__init__(f"{mode}: {kind}" + (f" ({detail})" if detail else ""))


class PersistenceError(IntelligenceError):
    """A study session could not be written to the document store."""

    def __init__(self, session_id: str, cause: Exception):
        self.session_id = session_id
        self.cause = cause
        super().__init__(f"Failed to persist session {session_id}: {cause}")
