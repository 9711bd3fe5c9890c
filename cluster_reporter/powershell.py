"""PowerShell invocation for failover clustering cmdlets."""

import json
import subprocess
from typing import Any

from cluster_reporter.exceptions import PowerShellError
from cluster_reporter.logging_config import get_logger

logger = get_logger(__name__)


# PowerShell treats the typographic single quotes as quote characters too
SINGLE_QUOTES = ("'", "‘", "’", "‚", "‛")

# Pin the console encoding so non-ASCII event text reaches us as UTF-8
PREAMBLE = (
    "[Console]::OutputEncoding = [System.Text.Encoding]::UTF8; $ErrorActionPreference = 'Stop'"
)


def quote(value: Any) -> str:
    """Render a value as a PowerShell single-quoted string literal.

    Every character PowerShell accepts as a single quote is doubled.
    """
    text = str(value)
    for char in SINGLE_QUOTES:
        text = text.replace(char, char * 2)
    return "'" + text + "'"


def quote_list(values) -> str:
    """Render values as a comma separated PowerShell array of literals."""
    return ",".join(quote(v) for v in values)


class PowerShellRunner:
    """Runs PowerShell scripts and decodes their JSON output."""

    def __init__(self, executable: str = "powershell", timeout: float | None = None):
        """Initialize the runner.

        Args:
            executable: PowerShell binary (``powershell`` or ``pwsh``)
            timeout: Optional timeout in seconds; None waits indefinitely
        """
        self.executable = executable
        self.timeout = timeout

    def build_command(self, script: str) -> list[str]:
        """Build the argument vector for a script."""
        return [
            self.executable,
            "-NoProfile",
            "-NonInteractive",
            "-Command",
            f"{PREAMBLE}; {script}",
        ]

    def run(self, script: str) -> str:
        """
        Execute a script and return its standard output.

        Raises:
            PowerShellError: If PowerShell is missing, times out or exits non-zero.
        """
        command = self.build_command(script)
        logger.debug(f"Running PowerShell: {script}")

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.error(f"PowerShell command timed out after {self.timeout} seconds")
            raise PowerShellError(
                "PowerShell command timed out",
                f"The command did not finish within {self.timeout} seconds.",
            )
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            logger.error(f"PowerShell command failed with return code {e.returncode}: {stderr}")
            raise PowerShellError(
                stderr.splitlines()[0] if stderr else f"PowerShell exited with code {e.returncode}",
                f"Command output: {stderr}\n\n"
                "Possible causes:\n"
                "1. The FailoverClusters module is not installed "
                "(Install-WindowsFeature RSAT-Clustering-PowerShell)\n"
                "2. The session is not elevated or lacks domain rights\n"
                "3. One of the nodes is unreachable",
                exit_code=e.returncode,
            )
        except FileNotFoundError:
            logger.error(f"PowerShell executable not found: {self.executable}")
            raise PowerShellError(
                f"PowerShell executable '{self.executable}' not found",
                "Run on a Windows host with PowerShell, or pass --powershell pwsh",
            )
        except OSError as e:
            logger.error(f"Could not start PowerShell: {e}")
            raise PowerShellError(f"Could not start PowerShell: {e.strerror or e}")
        except UnicodeDecodeError as e:
            logger.error(f"PowerShell output could not be decoded: {e}")
            raise PowerShellError("PowerShell output could not be decoded", str(e))

        logger.debug(f"PowerShell completed with return code {result.returncode}")
        return result.stdout

    def run_json(self, script: str) -> list[dict]:
        """
        Execute a script whose output is piped through ConvertTo-Json.

        Returns:
            List of decoded objects; a single object becomes a one-element list.

        Raises:
            PowerShellError: If the command fails or its output is not JSON.
        """
        output = self.run(f"ConvertTo-Json -Depth 4 -Compress -InputObject @({script})")
        if not output.strip():
            return []

        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse PowerShell JSON output: {e}")
            raise PowerShellError(
                "Failed to parse PowerShell output",
                f"Expected JSON but got: {output[:200]}",
            )

        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        if isinstance(data, list):
            return [item for item in data if isinstance(item, dict)]
        raise PowerShellError(
            "Unexpected PowerShell output",
            f"Expected a JSON object or array, got {type(data).__name__}",
        )
