"""
FFprobe adapter for audio/video stream and chapter metadata.
"""
import asyncio
import json
import os
import shutil
from pathlib import Path
from typing import Optional, List

from ...config import FFPROBE_BIN, FFPROBE_MAX_WORKERS, FFPROBE_TIMEOUT
from ...shared import Result, ErrorCode, get_logger

logger = get_logger(__name__)


class FFProbe:
    """
    FFprobe wrapper.

    Never raises exceptions - always returns Result.
    """

    def __init__(self, bin_name: Optional[str] = None, timeout: Optional[float] = None, max_workers: Optional[int] = None):
        """
        Initialize FFprobe adapter.

        Args:
            bin_name: FFprobe binary name or path
            timeout: Command timeout in seconds
            max_workers: Maximum concurrent ffprobe processes
        """
        self.bin = bin_name or FFPROBE_BIN or "ffprobe"
        self.timeout = float(timeout) if timeout is not None else float(FFPROBE_TIMEOUT)
        self._max_workers = max(1, int(max_workers if max_workers is not None else FFPROBE_MAX_WORKERS))
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._resolved_bin: Optional[str] = None
        self._available = self._check_available()

    def _resolve_executable(self, bin_name: str) -> Optional[str]:
        """
        Resolve and validate the ffprobe executable.

        Only an actual ffprobe binary is accepted, never an arbitrary command string.
        """
        raw = (bin_name or "").strip()
        if not self._is_safe_executable_token(raw):
            return None
        resolved = self._resolve_executable_path(raw)
        if not resolved:
            return None
        return resolved if self._is_ffprobe_name(resolved) else None

    @staticmethod
    def _is_safe_executable_token(raw: str) -> bool:
        if not raw:
            return False
        if "\x00" in raw or "\n" in raw or "\r" in raw:
            return False
        if any(ch in raw for ch in ("&", "|", ";", ">", "<")):
            return False
        return True

    @staticmethod
    def _resolve_executable_path(raw: str) -> Optional[str]:
        resolved = shutil.which(raw)
        if resolved:
            return resolved
        try:
            candidate = Path(raw)
            if candidate.is_file():
                return str(candidate.resolve(strict=True))
        except (OSError, RuntimeError, ValueError):
            return None
        return None

    @staticmethod
    def _is_ffprobe_name(resolved: str) -> bool:
        return Path(resolved).name.lower().startswith("ffprobe")

    def _check_available(self) -> bool:
        """Check if ffprobe is available in PATH."""
        resolved = self._resolve_executable(self.bin)
        if not resolved:
            return False
        self._resolved_bin = resolved
        return True

    def is_available(self) -> bool:
        """Check if ffprobe is available."""
        return self._available

    def _validate_probe_path(self, path: str) -> Result[str]:
        value = str(path or "").strip()
        if not value:
            return Result.Err(ErrorCode.INVALID_INPUT, "Empty probe path")
        if "\x00" in value or "\n" in value or "\r" in value:
            return Result.Err(ErrorCode.INVALID_INPUT, "Invalid characters in probe path")
        # a leading dash would be read as an ffprobe option
        if value.startswith("-"):
            return Result.Err(ErrorCode.INVALID_INPUT, "Probe path may not start with '-'")
        return Result.Ok(value)

    def _get_semaphore(self) -> asyncio.Semaphore:
        # Created lazily so the semaphore binds to the running loop
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self._max_workers)
        return self._semaphore

    async def aread(self, path: str) -> Result[dict]:
        """
        Read stream, format and chapter metadata.

        Returns:
            Result with a dict containing 'format', 'streams', 'chapters',
            'video_stream' and 'audio_stream'
        """
        if not self._available:
            return Result.Err(
                ErrorCode.TOOL_MISSING,
                "ffprobe not found in PATH",
                quality="none"
            )

        validated = self._validate_probe_path(path)
        if not validated.ok:
            return Result.Err(validated.code, validated.error or "Invalid probe path")
        path = str(validated.data)

        try:
            async with self._get_semaphore():
                process = await self._spawn_ffprobe_process(self._build_ffprobe_cmd(path))
                communicated = await self._communicate_with_timeout(process, path)
            if not communicated.ok:
                return Result.Err(
                    communicated.code or ErrorCode.FFPROBE_ERROR,
                    communicated.error or "ffprobe communication failed",
                    **(communicated.meta or {}),
                )
            stdout, stderr = communicated.data
            return self._parse_ffprobe_output(stdout, stderr, process.returncode, path)
        except json.JSONDecodeError as e:
            logger.error(f"ffprobe JSON parse error: {e}")
            return Result.Err(
                ErrorCode.PARSE_ERROR,
                f"Failed to parse ffprobe output: {e}",
                quality="degraded"
            )
        except Exception as e:
            logger.error(f"ffprobe unexpected error: {e}")
            return Result.Err(
                ErrorCode.FFPROBE_ERROR,
                str(e),
                quality="degraded"
            )

    def _build_ffprobe_cmd(self, path: str) -> List[str]:
        return [
            self._resolved_bin or self.bin,
            "-v", "error",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            "-show_chapters",
            path,
        ]

    async def _spawn_ffprobe_process(self, cmd: List[str]) -> asyncio.subprocess.Process:
        return await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            close_fds=os.name != "nt",
        )

    async def _communicate_with_timeout(
        self,
        process: asyncio.subprocess.Process,
        path: str,
    ) -> Result[tuple[str, str]]:
        try:
            stdout_b, stderr_b = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            logger.error(f"ffprobe timeout for {path}")
            return Result.Err(
                ErrorCode.TIMEOUT,
                f"ffprobe timeout after {self.timeout}s",
                quality="degraded"
            )
        stdout = (stdout_b or b"").decode("utf-8", errors="replace")
        stderr = (stderr_b or b"").decode("utf-8", errors="replace")
        return Result.Ok((stdout, stderr), quality="full")

    def _parse_ffprobe_output(
        self,
        stdout: str,
        stderr: str,
        returncode: Optional[int],
        path: str,
    ) -> Result[dict]:
        if returncode != 0:
            stderr_msg = stderr.strip()
            logger.warning(f"ffprobe error for {path}: {stderr_msg}")
            return Result.Err(
                ErrorCode.FFPROBE_ERROR,
                stderr_msg or "ffprobe command failed",
                quality="degraded"
            )
        if not stdout.strip():
            logger.warning(f"ffprobe returned empty output for {path}")
            return Result.Err(
                ErrorCode.FFPROBE_ERROR,
                "No ffprobe output",
                quality="degraded"
            )
        data = json.loads(stdout)
        if not isinstance(data, dict):
            return Result.Err(
                ErrorCode.PARSE_ERROR,
                "Invalid ffprobe output format",
                quality="degraded"
            )
        streams = data.get("streams") or []
        result = {
            "format": data.get("format") or {},
            "streams": streams,
            "chapters": data.get("chapters") or [],
            "video_stream": self._find_stream(streams, "video"),
            "audio_stream": self._find_stream(streams, "audio"),
        }
        return Result.Ok(result, quality="full")

    @staticmethod
    def _find_stream(streams: list, codec_type: str) -> dict:
        """First stream of the given codec type, or {}."""
        for stream in streams:
            if isinstance(stream, dict) and stream.get("codec_type") == codec_type:
                return stream
        return {}
