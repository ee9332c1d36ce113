import os
import sys
import logging

DEFAULT_MODEL = "mistral"
DEFAULT_URL = "http://localhost:11434"
DEFAULT_TIMEOUT = 120
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def default_model():
    return os.getenv("KUBECTLLAMA_MODEL", DEFAULT_MODEL)


def default_url():
    return os.getenv("KUBECTLLAMA_URL", DEFAULT_URL)


def default_timeout():
    """Request timeout in seconds, falling back when the variable is not a positive number."""
    value = os.getenv("KUBECTLLAMA_TIMEOUT")
    if not value:
        return DEFAULT_TIMEOUT
    try:
        timeout = float(value)
    except ValueError:
        return DEFAULT_TIMEOUT
    if timeout <= 0:
        return DEFAULT_TIMEOUT
    return timeout


def log_dir():
    return os.getenv("KUBECTLLAMA_LOG_DIR", os.path.expanduser("~/.kubectllama/logs"))


def setup_logging(verbose=False):
    """Send log records to the log file, never to the terminal."""
    level_name = "DEBUG" if verbose else os.getenv("KUBECTLLAMA_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    directory = log_dir()
    try:
        os.makedirs(directory, exist_ok=True)
    except OSError:
        # Read-only home: keep warnings visible, drop the rest
        logging.basicConfig(stream=sys.stderr, level=logging.WARNING, format=LOG_FORMAT)
        return None

    log_file = os.path.join(directory, "kubectllama.log")
    logging.basicConfig(filename=log_file, level=level, format=LOG_FORMAT)
    return log_file
