from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GenerationRequest:
    model: str
    prompt: str
    system: Optional[str] = None
    stream: bool = False

    def to_payload(self):
        """Build the JSON body for the generate endpoint."""
        payload = {
            "model": self.model,
            "prompt": self.prompt,
            "stream": self.stream,
        }
        if self.system:
            payload["system"] = self.system
        return payload


@dataclass(frozen=True)
class GenerationResponse:
    text: str
    done: bool = True


@dataclass(frozen=True)
class CandidateCommand:
    command_line: str
    explanation: Optional[str] = None

    @property
    def is_empty(self):
        return not self.command_line.strip()


@dataclass(frozen=True)
class ErrorSignal:
    message: str
    is_model_missing: bool = False

    @classmethod
    def from_message(cls, message):
        """Classify an endpoint error message."""
        lowered = message.lower()
        return cls(
            message=message,
            is_model_missing="model" in lowered and "not found" in lowered,
        )


@dataclass(frozen=True)
class ExitOutcome:
    success: bool
    executed: bool = False
    returncode: Optional[int] = None
    message: Optional[str] = None
