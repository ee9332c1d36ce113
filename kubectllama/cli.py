import sys
import logging
import argparse

from kubectllama import __version__, config
from kubectllama.errors import KubectllamaError, ModelMissingError
from kubectllama.executor import ExecutionGate
from kubectllama.generator import CommandGenerator
from kubectllama.spinner import Spinner

logger = logging.getLogger(__name__)

EXIT_WORDS = ("exit", "quit")


class KubectlAssistant:
    def __init__(self, generator, gate, auto_confirm=False, spinner=True):
        self.generator = generator
        self.gate = gate
        self.auto_confirm = auto_confirm
        self.spinner = spinner

    def ask(self, query):
        """Generate a command for one request, the spinner running meanwhile."""
        with Spinner(enabled=self.spinner):
            return self.generator.generate(query)

    def handle(self, query):
        """Process one request and return the exit code for it."""
        try:
            command = self.ask(query)
        except ModelMissingError:
            raise
        except KubectllamaError as e:
            logger.error(f"Request failed: {e}")
            print(f"❌ {e}", file=sys.stderr)
            return 1

        outcome = self.gate.confirm_and_run(command, auto_confirm=self.auto_confirm)
        if outcome.success:
            return 0
        if not outcome.executed:
            return 1
        # A failing kubectl run is reported but does not fail kubectllama itself
        logger.warning(f"Command failed: {outcome.message}")
        return 0

    def interactive(self, input_func=input):
        """Read requests until exit, quit or end of input."""
        while True:
            try:
                query = input_func("Enter your request: ")
            except EOFError:
                print()
                return 0

            query = query.strip()
            if not query:
                continue
            if query.lower() in EXIT_WORDS:
                return 0
            self.handle(query)


def positive_float(value):
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: '{value}'")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0: '{value}'")
    return number


def build_parser():
    parser = argparse.ArgumentParser(
        prog="kubectllama",
        description="Generate kubectl commands from natural language using a local Ollama model.",
    )
    parser.add_argument("query", nargs="*", help="The natural language request")
    parser.add_argument("--model", "-m", default=config.default_model(),
                        help=f"Model to use (default: {config.DEFAULT_MODEL})")
    parser.add_argument("--url", "-u", default=config.default_url(),
                        help=f"Ollama API URL (default: {config.DEFAULT_URL})")
    parser.add_argument("--yes", "-y", action="store_true", help="Execute without asking for confirmation")
    parser.add_argument("--interactive", "-i", action="store_true", help="Read requests from a prompt loop")
    parser.add_argument("--no-explain", action="store_true", help="Ask for the bare command without explanation")
    parser.add_argument("--timeout", type=positive_float, default=config.default_timeout(),
                        help=f"Request timeout in seconds (default: {config.DEFAULT_TIMEOUT})")
    parser.add_argument("--no-spinner", action="store_true", help="Disable the progress animation")
    parser.add_argument("--verbose", "-v", action="store_true", help="Write debug records to the log file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    query = " ".join(args.query).strip()
    if not query and not args.interactive:
        print("Usage: kubectllama <natural language request>", file=sys.stderr)
        return 1

    config.setup_logging(verbose=args.verbose)
    logger.info(f"Starting kubectllama {__version__} with model {args.model}")

    generator = CommandGenerator(
        model=args.model,
        base_url=args.url,
        explain=not args.no_explain,
        timeout=args.timeout,
    )
    assistant = KubectlAssistant(
        generator,
        ExecutionGate(),
        auto_confirm=args.yes,
        spinner=not args.no_spinner and sys.stdout.isatty(),
    )

    try:
        if args.interactive:
            return assistant.interactive()
        return assistant.handle(query)
    except ModelMissingError as e:
        logger.error(f"Model not installed: {e.model}")
        print(str(e))
        return 1
    except KeyboardInterrupt:
        print()
        return 130
