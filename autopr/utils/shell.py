"""Shell command execution utilities."""

import subprocess
from pathlib import Path
from typing import List, Optional, Union

from autopr.errors import AutoPRError
from autopr.utils.logger import get_logger

logger = get_logger(__name__)


class ShellError(AutoPRError):
    """Shell command execution error."""

    def __init__(self, message: str, returncode: int, stdout: str = "", stderr: str = ""):
        """Initialize shell error.

        Args:
            message: Error message
            returncode: Process return code
            stdout: Standard output
            stderr: Standard error
        """
        super().__init__(message)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class ShellResult:
    """Shell command result."""

    def __init__(
        self,
        returncode: int,
        stdout: str,
        stderr: str,
        command: str,
        cwd: Optional[Path] = None,
    ):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.command = command
        self.cwd = cwd

    @property
    def success(self) -> bool:
        """Check if command succeeded."""
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr, as a terminal would show it."""
        return "".join(part for part in (self.stdout, self.stderr) if part)

    def check(self) -> "ShellResult":
        """Check result and raise error if failed.

        Returns:
            Self for chaining

        Raises:
            ShellError: If command failed
        """
        if not self.success:
            detail = self.stderr.strip() or self.stdout.strip()
            message = f"Command failed: {self.command}"
            if detail:
                message = f"{message}: {detail}"
            raise ShellError(message, self.returncode, self.stdout, self.stderr)
        return self


def run_command(
    command: Union[str, List[str]],
    cwd: Optional[Union[str, Path]] = None,
    check: bool = False,
) -> ShellResult:
    """Run shell command synchronously.

    Blocks until the process exits; there is no timeout.

    Args:
        command: Command to execute. A string is split on whitespace, so
            arguments containing spaces must be passed as a list.
        cwd: Working directory
        check: Raise exception on failure

    Returns:
        Command result

    Raises:
        ShellError: If the command is missing, or fails and check=True
    """
    if isinstance(command, str):
        command_str = command
        command_list = command.split()
    else:
        command_str = " ".join(command)
        command_list = list(command)

    cwd_path = Path(cwd) if cwd else None

    logger.debug(f"Running command: {command_str} (cwd: {cwd_path})")

    try:
        result = subprocess.run(
            command_list,
            cwd=cwd_path,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as e:
        logger.error(f"Command not found: {command_str}")
        raise ShellError(f"Command not found: {command_str}", -1, "", str(e)) from e

    shell_result = ShellResult(
        returncode=result.returncode,
        stdout=result.stdout or "",
        stderr=result.stderr or "",
        command=command_str,
        cwd=cwd_path,
    )

    if result.returncode == 0:
        logger.debug(f"Command succeeded: {command_str}")
    else:
        logger.warning(f"Command failed with code {result.returncode}: {command_str}")
        if result.stderr:
            logger.debug(f"stderr: {result.stderr}")

    if check:
        shell_result.check()

    return shell_result


def get_git_root() -> Optional[Path]:
    """Get git repository root directory.

    Returns:
        Git root path or None if not in a git repo
    """
    try:
        result = run_command("git rev-parse --show-toplevel", check=True)
        return Path(result.stdout.strip())
    except ShellError:
        return None
