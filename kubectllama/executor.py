import sys
import shlex
import logging
import subprocess

from kubectllama.errors import ExecutionError, InvalidCommandError
from kubectllama.models import ExitOutcome

logger = logging.getLogger(__name__)

CONFIRM_ANSWERS = ("y", "yes", "")
DECLINE_ANSWERS = ("n", "no")


def tokenize(command_line):
    """Split a command line into the executable and its arguments.

    Quoting is honoured the way a POSIX shell would, but pipes, redirections
    and other shell operators are passed through as plain arguments.
    """
    try:
        parts = shlex.split(command_line)
    except ValueError as e:
        raise InvalidCommandError(command_line, reason=f"Cannot parse command ({e})") from e

    if not parts:
        raise InvalidCommandError(command_line, reason="Empty command")
    if parts[0] != "kubectl":
        raise InvalidCommandError(command_line, reason="Only kubectl commands can be executed")

    return parts[0], parts[1:]


class ExecutionGate:
    def __init__(self, input_func=input, output=None, color=None):
        self.input_func = input_func
        self.output = output if output is not None else sys.stdout
        if color is None:
            color = hasattr(self.output, "isatty") and self.output.isatty()
        self.color = color

    def _print(self, text=""):
        print(text, file=self.output, flush=True)

    def show(self, command):
        if self.color:
            self._print(f"\033[32m{command.command_line}\033[0m")
        else:
            self._print(command.command_line)
        if command.explanation:
            self._print(command.explanation)

    def confirm(self):
        """Ask until the user gives a yes or no answer. End of input declines."""
        while True:
            try:
                answer = self.input_func("Execute this command? [Y/n] ")
            except EOFError:
                self._print()
                return False

            answer = answer.strip().lower()
            if answer in CONFIRM_ANSWERS:
                return True
            if answer in DECLINE_ANSWERS:
                return False
            self._print("Invalid input. Please enter 'Y' or 'n'.")

    def run(self, command_line):
        """Run the command with the terminal's stdout and stderr."""
        executable, args = tokenize(command_line)
        logger.info(f"Executing command: {command_line}")

        try:
            result = subprocess.run([executable] + args)
        except OSError as e:
            logger.exception(f"Failed to start command: {command_line}")
            raise ExecutionError(f"Error executing command: {e}") from e

        logger.info(f"Command exited with code {result.returncode}: {command_line}")
        if result.returncode != 0:
            raise ExecutionError(
                f"Error executing command: exit status {result.returncode}",
                returncode=result.returncode,
            )
        return result.returncode

    def confirm_and_run(self, command, auto_confirm=False):
        """Show the command, get approval and run it."""
        if command.is_empty:
            self._print("Error: empty command")
            return ExitOutcome(success=False, message="empty command")

        try:
            tokenize(command.command_line)
        except InvalidCommandError as e:
            logger.warning(f"Refusing unrunnable command: {command.command_line}")
            self._print(f"Error: {e}")
            return ExitOutcome(success=False, message=str(e))

        self.show(command)
        if not auto_confirm and not self.confirm():
            logger.info(f"User declined command: {command.command_line}")
            return ExitOutcome(success=True, executed=False, message="declined")

        try:
            returncode = self.run(command.command_line)
        except ExecutionError as e:
            self._print(str(e))
            return ExitOutcome(success=False, executed=True, returncode=e.returncode, message=str(e))

        return ExitOutcome(success=True, executed=True, returncode=returncode)
