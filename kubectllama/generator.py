import logging
import requests

from kubectllama import config
from kubectllama.errors import (
    EndpointError,
    InvalidCommandError,
    MalformedResponseError,
    ModelMissingError,
    TransportError,
)
from kubectllama.models import CandidateCommand, ErrorSignal, GenerationRequest, GenerationResponse

logger = logging.getLogger(__name__)

GENERATE_PATH = "/api/generate"
COMMAND_PREFIX = "kubectl "
FENCE = "```"
FENCE_LANGUAGES = ("bash", "sh", "shell", "console", "zsh")

SYSTEM_PROMPT = (
    "You are an expert kubectl command generator, that generates only valid kubectl commands. "
    "You should never provide any links or request any additional prompts. "
    "You must use this documentation as reference "
    "https://kubernetes.io/docs/reference/generated/kubectl/kubectl-commands"
)

EXPLAIN_PROMPT = (
    "Generate a kubectl command (starting with 'kubectl ') for this request and then, "
    "after a blank line, give a one line explanation of the kubectl command: "
)

COMMAND_ONLY_PROMPT = (
    "Strictly return only a valid kubectl command (starting with 'kubectl ') as plain text. "
    "No explanations, no newlines, no formatting: "
)


def normalize_url(base_url):
    """Make sure the URL points at the generate endpoint."""
    url = (base_url or config.DEFAULT_URL).strip().rstrip("/")
    if url.endswith(GENERATE_PATH):
        return url
    return url + GENERATE_PATH


def strip_code_fence(text):
    """Remove a leading and a trailing triple-backtick fence."""
    body = text.strip()
    if body.startswith(FENCE):
        body = body[len(FENCE):]
        first, newline, rest = body.partition("\n")
        if newline and first.strip().lower() in FENCE_LANGUAGES:
            body = rest
    if body.endswith(FENCE):
        body = body[:-len(FENCE)]
    return body.strip()


def parse_model_output(text, explain=True):
    """Turn the raw model answer into a validated CandidateCommand."""
    raw = (text or "").replace("\r\n", "\n").strip()
    body = strip_code_fence(raw)

    command_part, _, rest = body.partition("\n\n")
    lines = [line.strip() for line in command_part.splitlines()]
    lines = [line for line in lines if line and line != FENCE]

    command = lines[0].strip("`").strip() if lines else ""

    explanation = None
    if explain:
        leftover = lines[1:] + [strip_code_fence(rest)]
        explanation = "\n".join(part for part in leftover if part).strip() or None

    if not command.startswith(COMMAND_PREFIX):
        raise InvalidCommandError(raw)

    return CandidateCommand(command_line=command, explanation=explanation)


class CommandGenerator:
    def __init__(self, model=None, base_url=None, explain=True, timeout=None):
        self.model = model or config.default_model()
        self.url = normalize_url(base_url or config.default_url())
        self.explain = explain
        self.timeout = timeout if timeout is not None else config.default_timeout()

    def build_request(self, query):
        """Build the generation request for a natural-language query."""
        prompt = EXPLAIN_PROMPT if self.explain else COMMAND_ONLY_PROMPT
        return GenerationRequest(
            model=self.model,
            prompt=prompt + query,
            system=SYSTEM_PROMPT,
            stream=False,
        )

    def _post(self, request):
        """Send the request and return the decoded JSON body and status code."""
        try:
            response = requests.post(
                self.url,
                json=request.to_payload(),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"Ollama request timed out after {self.timeout}s")
            raise TransportError(f"Timed out waiting for Ollama at {self.url}") from e
        except requests.exceptions.RequestException as e:
            logger.exception("Error connecting to Ollama")
            raise TransportError(
                f"Could not connect to Ollama at {self.url}. Is it running? Error: {e}"
            ) from e

        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"Ollama returned non-JSON body: {response.text}")
            raise MalformedResponseError(f"Error parsing Ollama response: {e}") from e

        if not isinstance(body, dict):
            raise MalformedResponseError("Error parsing Ollama response: expected a JSON object")

        return body, response.status_code

    def _check_error(self, body, status_code):
        error = body.get("error")
        if error:
            signal = ErrorSignal.from_message(str(error))
            logger.error(f"Ollama error: {signal.message}")
            if signal.is_model_missing:
                raise ModelMissingError(signal, self.model)
            raise EndpointError(signal)

        if status_code >= 400:
            raise EndpointError(ErrorSignal.from_message(f"HTTP {status_code}"))

    def generate(self, query):
        """Ask the model for a kubectl command matching the query."""
        if not query or not query.strip():
            raise ValueError("query must not be empty")

        request = self.build_request(query.strip())
        logger.info(f"Requesting command from {self.url} with model {self.model}: {query}")

        body, status_code = self._post(request)
        self._check_error(body, status_code)

        text = body.get("response")
        if not isinstance(text, str):
            raise MalformedResponseError("Error parsing Ollama response: missing 'response' field")
        generation = GenerationResponse(text=text, done=bool(body.get("done", True)))
        logger.debug(f"Raw model response: {generation.text}")
        if not generation.done:
            logger.warning("Ollama reported an unfinished generation, the answer may be truncated")

        try:
            candidate = parse_model_output(generation.text, explain=self.explain)
        except InvalidCommandError:
            logger.warning(f"Model returned an invalid command: {generation.text}")
            raise

        logger.info(f"Generated command: {candidate.command_line}")
        return candidate
