"""Supervisor for the external cloudflared process that exposes a public URL."""

import asyncio
import re
import signal
from typing import List, Optional, Sequence

from common.constants import TUNNEL_DOMAIN
from common.logging_config import get_logger
from dropserver.broadcast import BroadcastHub
from dropserver.events import TunnelAvailable, TunnelStopped
from dropserver.types import TunnelStatus

logger = get_logger(__name__)

PUBLIC_URL_PATTERN = re.compile(r"https://[^\s'\"]+\." + re.escape(TUNNEL_DOMAIN) + r"[^\s'\"]*")


def extract_public_url(line: str) -> Optional[str]:
    """Return the first tunnel URL in a line of cloudflared output, if any."""
    if TUNNEL_DOMAIN not in line:
        return None
    match = PUBLIC_URL_PATTERN.search(line)
    return match.group(0) if match else None


def describe_exit(returncode: Optional[int]):
    """Split an asyncio returncode into (exit code, signal name)."""
    if returncode is None:
        return None, None
    if returncode < 0:
        try:
            return None, signal.Signals(-returncode).name
        except ValueError:
            return None, str(-returncode)
    return returncode, None


class TunnelSupervisor:
    """
    Idle -> Starting -> Running(url) -> Idle, or Disabled.

    The first URL seen in a process's output is recorded and announced;
    later ones are ignored until that process exits. Exposing a public
    URL is best-effort: spawn failures are logged and never retried.
    """

    def __init__(
        self,
        hub: BroadcastHub,
        port: int,
        binary: str = "cloudflared",
        enabled: bool = True,
        command: Optional[Sequence[str]] = None
    ):
        self.hub = hub
        self.port = port
        self.binary = binary
        self.command = list(command) if command else None
        self.status = TunnelStatus.IDLE if enabled else TunnelStatus.DISABLED
        self.public_url: Optional[str] = None
        self._process: Optional[asyncio.subprocess.Process] = None
        self._task: Optional[asyncio.Task] = None

    def build_command(self) -> List[str]:
        if self.command:
            return list(self.command)
        return [self.binary, "tunnel", "--url", f"http://localhost:{self.port}"]

    async def start(self) -> bool:
        """
        Spawn the tunnel process and begin scanning its output.

        Returns:
            True if a process was spawned
        """
        if self.status == TunnelStatus.DISABLED:
            logger.info("cloudflared start skipped because DISABLE_CLOUDFLARED is set")
            return False
        if self.status != TunnelStatus.IDLE:
            logger.warning(f"Tunnel already {self.status.value}")
            return False

        self.status = TunnelStatus.STARTING
        cmd = self.build_command()
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT
            )
        except OSError as e:
            logger.error(f"Failed to start cloudflared ({cmd[0]}): {e}")
            self.status = TunnelStatus.IDLE
            return False

        self._process = process
        self.public_url = None
        self._task = asyncio.create_task(self._supervise(process))
        logger.info(f"Started cloudflared (pid={process.pid}) forwarding to port {self.port}")
        return True

    def stop(self) -> None:
        """
        Ask the process to terminate and return immediately. The Idle
        transition happens when the process actually exits.
        """
        process = self._process
        if process is None or process.returncode is not None:
            logger.info("No cloudflared process to stop.")
            return
        try:
            process.terminate()
            logger.info("Sent SIGTERM to cloudflared process.")
        except ProcessLookupError:
            logger.info("cloudflared process already gone")

    async def wait_closed(self) -> None:
        """Wait until the current process (if any) has exited and been reported."""
        if self._task is not None:
            await asyncio.shield(self._task)

    async def _supervise(self, process: asyncio.subprocess.Process) -> None:
        try:
            while True:
                try:
                    raw = await process.stdout.readline()
                except ValueError as e:
                    logger.warning(f"Skipping oversized cloudflared output line: {e}")
                    continue
                if not raw:
                    break
                line = raw.decode("utf-8", errors="replace").rstrip()
                logger.info(f"[cloudflared] {line}")
                url = extract_public_url(line)
                if url:
                    self._record_public_url(url)
        finally:
            returncode = await process.wait()
            self._on_exit(returncode)

    def _record_public_url(self, url: str) -> None:
        if self.public_url is not None:
            return
        self.public_url = url
        self.status = TunnelStatus.RUNNING
        logger.info("=" * 60)
        logger.info(f"Public URL: {url} (bridged at /bridge)")
        logger.info("=" * 60)
        self.hub.publish(TunnelAvailable(url))

    def _on_exit(self, returncode: Optional[int]) -> None:
        code, sig = describe_exit(returncode)
        logger.info(f"cloudflared exited with code={code} signal={sig}")
        self._process = None
        self.public_url = None
        if self.status != TunnelStatus.DISABLED:
            self.status = TunnelStatus.IDLE
        self.hub.publish(TunnelStopped(code=code, signal=sig))
