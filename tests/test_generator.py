import unittest
from unittest.mock import Mock, patch

import requests

from kubectllama.errors import (
    EndpointError,
    InvalidCommandError,
    MalformedResponseError,
    ModelMissingError,
    TransportError,
)
from kubectllama.generator import CommandGenerator, normalize_url, parse_model_output, strip_code_fence
from kubectllama.models import ErrorSignal


def _response(body=None, status_code=200, json_error=None):
    response = Mock(status_code=status_code, text=str(body))
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = body
    return response


class NormalizeUrlTests(unittest.TestCase):
    def test_appends_generate_path(self) -> None:
        self.assertEqual(normalize_url("http://localhost:11434"), "http://localhost:11434/api/generate")

    def test_strips_trailing_slash(self) -> None:
        self.assertEqual(normalize_url("http://gpu-box:11434/"), "http://gpu-box:11434/api/generate")

    def test_keeps_full_endpoint(self) -> None:
        url = "http://localhost:11434/api/generate"
        self.assertEqual(normalize_url(url), url)

    def test_full_endpoint_with_trailing_slash(self) -> None:
        self.assertEqual(normalize_url("http://h:11434/api/generate/"), "http://h:11434/api/generate")


class ParseModelOutputTests(unittest.TestCase):
    def test_plain_command(self) -> None:
        candidate = parse_model_output("kubectl get pods")
        self.assertEqual(candidate.command_line, "kubectl get pods")
        self.assertIsNone(candidate.explanation)

    def test_fenced_command_matches_unfenced(self) -> None:
        plain = parse_model_output("kubectl get pods")
        self.assertEqual(parse_model_output("```kubectl get pods```"), plain)
        self.assertEqual(parse_model_output("```bash\nkubectl get pods\n```"), plain)
        self.assertEqual(parse_model_output("  `kubectl get pods`  "), plain)

    def test_fence_stripping_is_idempotent(self) -> None:
        once = strip_code_fence("```kubectl get pods```")
        self.assertEqual(strip_code_fence(once), once)

    def test_explanation_after_blank_line(self) -> None:
        candidate = parse_model_output("kubectl get pods -n kube-system\n\nLists pods in the kube-system namespace.")
        self.assertEqual(candidate.command_line, "kubectl get pods -n kube-system")
        self.assertEqual(candidate.explanation, "Lists pods in the kube-system namespace.")

    def test_explanation_on_next_line(self) -> None:
        candidate = parse_model_output("kubectl get nodes\nLists all nodes.")
        self.assertEqual(candidate.command_line, "kubectl get nodes")
        self.assertEqual(candidate.explanation, "Lists all nodes.")

    def test_explanation_dropped_without_explain(self) -> None:
        candidate = parse_model_output("kubectl get nodes\n\nLists all nodes.", explain=False)
        self.assertEqual(candidate.command_line, "kubectl get nodes")
        self.assertIsNone(candidate.explanation)

    def test_missing_prefix_keeps_raw_text(self) -> None:
        with self.assertRaises(InvalidCommandError) as ctx:
            parse_model_output("get pods")
        self.assertEqual(ctx.exception.raw_text, "get pods")
        self.assertIn("get pods", str(ctx.exception))

    def test_bare_kubectl_is_invalid(self) -> None:
        with self.assertRaises(InvalidCommandError):
            parse_model_output("kubectl")


class ErrorSignalTests(unittest.TestCase):
    def test_model_missing_is_case_insensitive(self) -> None:
        self.assertTrue(ErrorSignal.from_message("Model 'foo' NOT FOUND, try pulling it first").is_model_missing)

    def test_other_errors_are_generic(self) -> None:
        self.assertFalse(ErrorSignal.from_message("model is loading").is_model_missing)
        self.assertFalse(ErrorSignal.from_message("file not found").is_model_missing)


class CommandGeneratorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.generator = CommandGenerator(model="mistral", base_url="http://localhost:11434", timeout=5)

    def test_request_payload(self) -> None:
        with patch("kubectllama.generator.requests.post") as post:
            post.return_value = _response({"response": "kubectl get pods", "done": True})
            self.generator.generate("list pods")

        args, kwargs = post.call_args
        self.assertEqual(args[0], "http://localhost:11434/api/generate")
        self.assertEqual(kwargs["headers"]["Content-Type"], "application/json")
        self.assertEqual(kwargs["timeout"], 5)
        payload = kwargs["json"]
        self.assertEqual(payload["model"], "mistral")
        self.assertFalse(payload["stream"])
        self.assertTrue(payload["prompt"].endswith("list pods"))
        self.assertIn("kubectl", payload["system"])

    def test_unfinished_generation_is_logged(self) -> None:
        with patch("kubectllama.generator.requests.post") as post:
            post.return_value = _response({"response": "kubectl get pods", "done": False})
            with self.assertLogs("kubectllama.generator", level="WARNING") as logs:
                candidate = self.generator.generate("list pods")

        self.assertEqual(candidate.command_line, "kubectl get pods")
        self.assertIn("unfinished generation", "\n".join(logs.output))

    def test_success_body(self) -> None:
        with patch("kubectllama.generator.requests.post") as post:
            post.return_value = _response({"response": "kubectl get pods", "done": True})
            candidate = self.generator.generate("list pods")

        self.assertEqual(candidate.command_line, "kubectl get pods")
        self.assertIsNone(candidate.explanation)

    def test_model_missing_error(self) -> None:
        with patch("kubectllama.generator.requests.post") as post:
            post.return_value = _response({"error": "model 'foo' not found"}, status_code=404)
            with self.assertRaises(ModelMissingError) as ctx:
                self.generator.generate("list pods")

        self.assertTrue(ctx.exception.signal.is_model_missing)
        self.assertIn("ollama pull mistral", str(ctx.exception))

    def test_generic_endpoint_error(self) -> None:
        with patch("kubectllama.generator.requests.post") as post:
            post.return_value = _response({"error": "out of memory"}, status_code=500)
            with self.assertRaises(EndpointError) as ctx:
                self.generator.generate("list pods")

        self.assertNotIsInstance(ctx.exception, ModelMissingError)
        self.assertEqual(ctx.exception.signal.message, "out of memory")

    def test_http_error_without_error_field(self) -> None:
        with patch("kubectllama.generator.requests.post") as post:
            post.return_value = _response({}, status_code=502)
            with self.assertRaises(EndpointError):
                self.generator.generate("list pods")

    def test_malformed_json(self) -> None:
        with patch("kubectllama.generator.requests.post") as post:
            post.return_value = _response(json_error=ValueError("Expecting value"))
            with self.assertRaises(MalformedResponseError):
                self.generator.generate("list pods")

    def test_missing_response_field(self) -> None:
        with patch("kubectllama.generator.requests.post") as post:
            post.return_value = _response({"done": True})
            with self.assertRaises(MalformedResponseError):
                self.generator.generate("list pods")

    def test_connection_refused(self) -> None:
        with patch("kubectllama.generator.requests.post") as post:
            post.side_effect = requests.exceptions.ConnectionError("connection refused")
            with self.assertRaises(TransportError):
                self.generator.generate("list pods")
        self.assertEqual(post.call_count, 1)

    def test_timeout(self) -> None:
        with patch("kubectllama.generator.requests.post") as post:
            post.side_effect = requests.exceptions.ReadTimeout("timed out")
            with self.assertRaises(TransportError):
                self.generator.generate("list pods")

    def test_invalid_command(self) -> None:
        with patch("kubectllama.generator.requests.post") as post:
            post.return_value = _response({"response": "get pods", "done": True})
            with self.assertRaises(InvalidCommandError) as ctx:
                self.generator.generate("list pods")
        self.assertEqual(ctx.exception.raw_text, "get pods")

    def test_blank_query_rejected(self) -> None:
        with patch("kubectllama.generator.requests.post") as post:
            with self.assertRaises(ValueError):
                self.generator.generate("   ")
        post.assert_not_called()

    def test_command_only_prompt(self) -> None:
        generator = CommandGenerator(model="llama3", explain=False)
        request = generator.build_request("list pods")
        self.assertNotIn("explanation of", request.prompt)
        self.assertEqual(request.model, "llama3")


if __name__ == "__main__":
    unittest.main()
