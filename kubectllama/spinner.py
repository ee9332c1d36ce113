import sys
import threading


class Spinner:
    """Animated progress line shown while the model is thinking."""

    GLYPHS = ["|", "/", "-", "\\"]

    def __init__(self, message="Generating kubectl command ", interval=0.1, stream=None, enabled=True):
        self.message = message
        self.interval = interval
        self.stream = stream if stream is not None else sys.stdout
        self.enabled = enabled
        self._stop_event = threading.Event()
        self._thread = None

    def _write(self, text):
        self.stream.write(text)
        self.stream.flush()

    def _animate(self):
        index = 0
        while not self._stop_event.is_set():
            glyph = self.GLYPHS[index % len(self.GLYPHS)]
            self._write(f"\r{self.message}{glyph}")
            index += 1
            if self._stop_event.wait(self.interval):
                break

    def start(self):
        if not self.enabled or self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._animate, daemon=True)
        self._thread.start()

    def stop(self):
        """Stop the animation and erase its line before anything else prints."""
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join()
        self._thread = None
        self._write("\r" + " " * (len(self.message) + 1) + "\r")

    @property
    def running(self):
        return self._thread is not None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False
