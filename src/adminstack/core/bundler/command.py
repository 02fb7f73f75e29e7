"""Bundler and dev server backed by an external command (webpack-cli by default).

Command templates come from the ``bundler`` config section. Each argument is
rendered with ``str.format`` against these placeholders: ``{mode}``,
``{entry}``, ``{output}``, ``{public_path}``, plus ``{host}``, ``{port}`` and
``{history_fallback}`` for the serve command.
"""
from __future__ import annotations

import json
import logging
import os
import signal
import subprocess
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, IO, List, Mapping, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from adminstack.core.config.domains.bundler import BundlerSettings
from adminstack.core.exceptions import ConfigurationError, DevServerError

from .base import BundlerConfig, CompileResult, DevServerOptions

logger = logging.getLogger(__name__)

GLOBALS_ENV_PREFIX = "ADMINSTACK_"


def _is_http_responsive(url: str, *, timeout_seconds: float) -> bool:
    req = Request(url, method="GET")
    try:
        with urlopen(req, timeout=timeout_seconds):
            return True
    except HTTPError:
        # Any HTTP response implies a server is listening.
        return True
    except (URLError, OSError, ValueError):
        return False


def _popen_kwargs() -> Dict[str, Any]:
    if os.name == "posix":
        return {"start_new_session": True}
    if os.name == "nt":
        creationflags = getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", None)
        if isinstance(creationflags, int):
            return {"creationflags": creationflags}
    return {}


def _signal_group(pid: int, sig: int) -> bool:
    if os.name == "posix":
        try:
            os.killpg(pid, sig)
            return True
        except OSError:
            pass
    try:
        os.kill(pid, sig)
        return True
    except OSError:
        return False


def _terminate_pid(pid: int, *, timeout_seconds: float) -> None:
    """SIGTERM the process group, then SIGKILL it if it outlives the timeout."""
    if pid <= 0:
        return
    if not _signal_group(pid, signal.SIGTERM):
        return

    deadline = time.time() + max(0.1, float(timeout_seconds))
    while time.time() < deadline:
        try:
            os.kill(pid, 0)
        except OSError:
            return
        time.sleep(0.05)

    _signal_group(pid, getattr(signal, "SIGKILL", signal.SIGTERM))


def render_command(template: Sequence[str], values: Mapping[str, object]) -> List[str]:
    """Fill placeholders in a command template.

    Raises:
        ConfigurationError: If the template is empty or names an unknown placeholder.
    """
    if not template:
        raise ConfigurationError("Bundler command is empty")
    try:
        return [str(part).format(**values) for part in template]
    except (KeyError, IndexError, ValueError) as exc:
        raise ConfigurationError(
            f"Invalid placeholder in bundler command {list(template)!r}: {exc}",
            context={"command": list(template)},
        ) from exc


def globals_env(values: Mapping[str, str]) -> Dict[str, str]:
    """Map bundler globals to ``ADMINSTACK_*`` environment variables."""
    env: Dict[str, str] = {}
    for key, value in values.items():
        name = GLOBALS_ENV_PREFIX + str(key).upper().replace("-", "_")
        env[name] = str(value)
    return env


def _build_env(config: BundlerConfig) -> Dict[str, str]:
    env = dict(os.environ)
    env.update(globals_env(config.globals))
    env["NODE_ENV"] = config.mode
    return env


def _template_values(config: BundlerConfig, **extra: object) -> Dict[str, object]:
    values: Dict[str, object] = {
        "mode": config.mode,
        "entry": str(config.entry_path),
        "output": str(config.output_path),
        "public_path": config.public_path,
    }
    values.update(extra)
    return values


def _message(item: object) -> str:
    # webpack 4 reports plain strings, webpack 5 reports objects.
    if isinstance(item, Mapping):
        text = item.get("message") or item.get("details") or ""
        module = item.get("moduleName") or item.get("moduleIdentifier")
        if module and text and str(module) not in str(text):
            return f"{module}: {text}"
        return str(text) or json.dumps(item, sort_keys=True)
    return str(item)


def parse_stats(stdout: str) -> Optional[Dict[str, Any]]:
    """Extract webpack's JSON stats from command output.

    Tools such as ``npx`` may print banner lines before the JSON document, so
    parsing restarts at the first ``{`` when the whole output is not JSON.
    """
    text = (stdout or "").strip()
    if not text:
        return None
    for candidate in (text, text[text.find("{"):] if "{" in text else ""):
        if not candidate:
            continue
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return None


def result_from_output(returncode: int, stdout: str, stderr: str) -> CompileResult:
    stats = parse_stats(stdout)
    if stats is None:
        if returncode == 0:
            return CompileResult()
        detail = (stderr or "").strip() or (stdout or "").strip()
        return CompileResult(errors=[detail or f"Bundler exited with status {returncode}"])

    errors = [_message(e) for e in stats.get("errors") or []]
    warnings = [_message(w) for w in stats.get("warnings") or []]
    if returncode != 0 and not errors:
        detail = (stderr or "").strip()
        errors.append(detail or f"Bundler exited with status {returncode}")
    return CompileResult(errors=errors, warnings=warnings, stats=stats)


class CommandBundler:
    """Runs the configured build command once and reports its outcome."""

    def __init__(self, settings: BundlerSettings, *, cwd: Optional[Path] = None) -> None:
        self.settings = settings
        self.cwd = Path(cwd or settings.project_root)

    def command_for(self, config: BundlerConfig) -> List[str]:
        return render_command(self.settings.build_command, _template_values(config))

    def compile(self, config: BundlerConfig) -> CompileResult:
        argv = self.command_for(config)
        logger.info("Compiling %s -> %s", config.entry_path, config.output_path)
        logger.debug("Running %s", argv)
        try:
            proc = subprocess.run(  # noqa: S603
                argv,
                cwd=str(self.cwd),
                env=_build_env(config),
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            return CompileResult(errors=[f"Could not run bundler {argv[0]!r}: {exc}"])

        result = result_from_output(proc.returncode, proc.stdout, proc.stderr)
        logger.debug(
            "Bundler exited with %d (%d error(s), %d warning(s))",
            proc.returncode,
            len(result.errors),
            len(result.warnings),
        )
        return result


class CommandDevServerHandle:
    """A running dev server process."""

    def __init__(
        self,
        process: "subprocess.Popen[str]",
        url: str,
        *,
        shutdown_timeout_seconds: float,
        log_file: Optional[IO[str]] = None,
    ) -> None:
        self.process = process
        self.url = url
        self._shutdown_timeout = shutdown_timeout_seconds
        self._log_file = log_file

    @property
    def pid(self) -> int:
        return self.process.pid

    def is_running(self) -> bool:
        return self.process.poll() is None

    def wait(self) -> int:
        return self.process.wait()

    def stop(self) -> None:
        if self.is_running():
            logger.info("Stopping dev server (pid %d)", self.pid)
            _terminate_pid(self.pid, timeout_seconds=self._shutdown_timeout)
            try:
                self.process.wait(timeout=self._shutdown_timeout)
            except subprocess.TimeoutExpired:
                logger.warning("Dev server pid %d did not exit", self.pid)
        if self._log_file is not None:
            self._log_file.close()
            self._log_file = None


def _read_tail(stream: IO[str], limit: int = 2000) -> str:
    stream.flush()
    stream.seek(0)
    text = stream.read()
    return text[-limit:].strip()


class CommandDevServer:
    """Launches the configured serve command and waits for it to answer."""

    def __init__(
        self,
        settings: BundlerSettings,
        *,
        cwd: Optional[Path] = None,
        poll_interval_seconds: float = 0.25,
    ) -> None:
        self.settings = settings
        self.cwd = Path(cwd or settings.project_root)
        self.poll_interval_seconds = poll_interval_seconds

    def command_for(self, config: BundlerConfig, options: DevServerOptions) -> List[str]:
        values = _template_values(
            config,
            host=options.host,
            port=options.port,
            history_fallback=options.history_fallback,
        )
        return render_command(self.settings.serve_command, values)

    def serve(self, config: BundlerConfig, options: DevServerOptions) -> CommandDevServerHandle:
        """Start the dev server.

        Raises:
            DevServerError: If the port is already answering, the process exits
                early, or it does not answer before the startup timeout.
        """
        url = options.url
        context = {"url": url, "port": options.port}
        if _is_http_responsive(url, timeout_seconds=1.0):
            raise DevServerError(f"Port {options.port} is already in use ({url})", context=context)

        argv = self.command_for(config, options)
        logger.info("Starting dev server on %s", url)
        logger.debug("Running %s", argv)
        log_file = tempfile.TemporaryFile(mode="w+", encoding="utf-8")
        try:
            process = subprocess.Popen(  # noqa: S603
                argv,
                cwd=str(self.cwd),
                env=_build_env(config),
                stdout=subprocess.DEVNULL,
                stderr=log_file,
                text=True,
                **_popen_kwargs(),
            )
        except OSError as exc:
            log_file.close()
            raise DevServerError(f"Could not run dev server {argv[0]!r}: {exc}", context=context) from exc

        handle = CommandDevServerHandle(
            process,
            url,
            shutdown_timeout_seconds=self.settings.shutdown_timeout_seconds,
            log_file=log_file,
        )
        deadline = time.time() + self.settings.startup_timeout_seconds
        while time.time() < deadline:
            code = process.poll()
            if code is not None:
                detail = _read_tail(log_file)
                handle.stop()
                message = f"Dev server exited with status {code}"
                if detail:
                    message = f"{message}: {detail}"
                raise DevServerError(message, context={**context, "exit_code": code})
            if _is_http_responsive(url, timeout_seconds=1.0):
                logger.info("Dev server ready at %s", url)
                return handle
            time.sleep(self.poll_interval_seconds)

        handle.stop()
        raise DevServerError(
            f"Dev server did not answer on {url} within {self.settings.startup_timeout_seconds:g}s",
            context=context,
        )


__all__ = [
    "CommandBundler",
    "CommandDevServer",
    "CommandDevServerHandle",
    "globals_env",
    "parse_stats",
    "render_command",
    "result_from_output",
]
