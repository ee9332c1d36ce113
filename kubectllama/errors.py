class KubectllamaError(Exception):
    """Base class for every failure surfaced to the user."""


class TransportError(KubectllamaError):
    pass


class MalformedResponseError(KubectllamaError):
    pass


class EndpointError(KubectllamaError):
    """The endpoint answered with an error instead of a generation."""

    def __init__(self, signal):
        super().__init__(f"Error from Ollama: {signal.message}")
        self.signal = signal


class ModelMissingError(EndpointError):
    def __init__(self, signal, model):
        super().__init__(signal)
        self.model = model

    def __str__(self):
        return (
            f"Error: Model '{self.model}' is not installed locally. "
            f"Please download it first using:\nollama pull {self.model}"
        )


class InvalidCommandError(KubectllamaError):
    def __init__(self, raw_text, reason="Invalid command received"):
        super().__init__(f"{reason}: {raw_text}")
        self.raw_text = raw_text


class ExecutionError(KubectllamaError):
    def __init__(self, message, returncode=None):
        super().__init__(message)
        self.returncode = returncode
