"""
tl;dv MCP meeting source adapter.

Implements MeetingSourcePort by spawning the tl;dv MCP server for each call
and speaking newline-delimited JSON-RPC 2.0 over its stdio.

Process lifecycle problems (spawn failure, timeout, non-zero exit, garbage on
stdout) and tool-reported errors are all translated into MeetingSourceError
here, so callers only ever see one error type.
"""

from __future__ import annotations

import json
import os
import subprocess
from typing import Any, Callable, Dict, List, Optional, Tuple

from shared_utils.constants import Defaults, LogScope, McpMode, McpTools
from shared_utils.error_handler import ConfigurationError, MeetingSourceError
from shared_utils.logging_utils import get_scoped_logger


logger = get_scoped_logger(LogScope.ADAPTER)

_INIT_REQUEST_ID = 1
_CALL_REQUEST_ID = 2


class McpMeetingSourceAdapter:
    """MeetingSourcePort backed by the tl;dv MCP server process.

    Args:
        mode: ``"docker"`` runs ``docker run ... <docker_image>``;
            ``"node"`` runs ``node <mcp_path>``.
        api_key: tl;dv API key handed to the server as ``TLDV_API_KEY``.
        mcp_path: Path to the server entrypoint (node mode only).
        docker_image: Image name (docker mode only).
        timeout_seconds: Hard limit for one round-trip.
        runner: ``subprocess.run`` compatible callable (injectable for tests).
    """

    def __init__(
        self,
        mode: str = McpMode.DOCKER.value,
        api_key: Optional[str] = None,
        mcp_path: Optional[str] = None,
        docker_image: str = Defaults.MCP_DOCKER_IMAGE,
        timeout_seconds: float = Defaults.MCP_TIMEOUT_SECONDS,
        runner: Optional[Callable[..., subprocess.CompletedProcess]] = None,
    ) -> None:
        if mode not in {m.value for m in McpMode}:
            raise ConfigurationError(f"Unsupported MCP mode: {mode}", context={"mode": mode})
        if mode == McpMode.NODE.value and not mcp_path:
            raise ConfigurationError("TLDV_MCP_PATH is required in node mode")

        self._mode = mode
        self._api_key = api_key or ""
        self._mcp_path = mcp_path
        self._docker_image = docker_image
        self._timeout = timeout_seconds
        self._run = runner or subprocess.run

    @classmethod
    def from_settings(cls, settings: Any) -> "McpMeetingSourceAdapter":
        """Build the adapter from a ``Settings`` instance."""
        return cls(
            mode=settings.mcp_mode,
            api_key=settings.tldv_api_key,
            mcp_path=settings.tldv_mcp_path,
            docker_image=settings.mcp_docker_image,
            timeout_seconds=settings.mcp_timeout_seconds,
        )

    # ------------------------------------------------------------------
    # MeetingSourcePort implementation
    # ------------------------------------------------------------------

    def list_meetings(self, filters: Dict[str, Any]) -> Any:
        args = {k: v for k, v in (filters or {}).items() if v not in (None, "")}
        return self.call_tool(McpTools.LIST_MEETINGS, args)

    def get_metadata(self, meeting_id: str) -> Any:
        return self.call_tool(McpTools.GET_METADATA, {"meetingId": meeting_id})

    def get_transcript(self, meeting_id: str) -> Any:
        return self.call_tool(McpTools.GET_TRANSCRIPT, {"meetingId": meeting_id})

    def get_highlights(self, meeting_id: str) -> Any:
        return self.call_tool(McpTools.GET_HIGHLIGHTS, {"meetingId": meeting_id})

    # ------------------------------------------------------------------
    # JSON-RPC round-trip
    # ------------------------------------------------------------------

    def call_tool(self, tool: str, arguments: Dict[str, Any]) -> Any:
        """Run one ``tools/call`` against a fresh server process.

        Raises:
            MeetingSourceError: ``kind="transport"`` for spawn/timeout/exit/parse
                failures, ``kind="tool"`` for errors the tool reports.
        """
        command, env = self._build_command()
        payload = self._build_messages(tool, arguments)

        logger.debug("mcp_call_started", tool=tool, mode=self._mode, arg_keys=sorted(arguments))

        try:
            completed = self._run(
                command,
                input=payload,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                env=env,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            logger.error("mcp_call_timeout", tool=tool, timeout_seconds=self._timeout)
            raise MeetingSourceError(
                f"MCP call {tool} timed out after {self._timeout}s", tool=tool
            ) from exc
        except OSError as exc:
            logger.error("mcp_process_start_failed", tool=tool, error=str(exc))
            raise MeetingSourceError(
                f"Failed to start MCP process: {exc}", tool=tool
            ) from exc

        if completed.stderr:
            logger.debug("mcp_stderr", tool=tool, stderr=completed.stderr.strip()[:500])

        if completed.returncode != 0:
            logger.error("mcp_process_failed", tool=tool, exit_code=completed.returncode)
            raise MeetingSourceError(
                f"MCP process exited with code {completed.returncode}: "
                f"{(completed.stderr or '').strip()}",
                tool=tool,
                context={"exit_code": completed.returncode},
            )

        response = self._select_response(completed.stdout or "", tool)

        if response.get("error"):
            error = response["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            logger.warning("mcp_tool_error", tool=tool, error=message)
            raise MeetingSourceError(message or "MCP Error", kind=MeetingSourceError.TOOL, tool=tool)

        result = self._unwrap_result(response.get("result"), tool)
        logger.debug("mcp_call_completed", tool=tool)
        return result

    def _build_command(self) -> Tuple[List[str], Dict[str, str]]:
        # Key travels through the environment, never on the command line.
        env = {**os.environ, "TLDV_API_KEY": self._api_key}
        if self._mode == McpMode.DOCKER.value:
            command = [
                "docker", "run", "--rm", "--init", "-i",
                "-e", "TLDV_API_KEY",
                self._docker_image,
            ]
        else:
            command = ["node", self._mcp_path]
        return command, env

    @staticmethod
    def _build_messages(tool: str, arguments: Dict[str, Any]) -> str:
        messages = [
            {
                "jsonrpc": "2.0",
                "id": _INIT_REQUEST_ID,
                "method": "initialize",
                "params": {
                    "protocolVersion": Defaults.MCP_PROTOCOL_VERSION,
                    "capabilities": {},
                    "clientInfo": {"name": Defaults.SERVICE_NAME, "version": "1.0.0"},
                },
            },
            {"jsonrpc": "2.0", "method": "notifications/initialized"},
            {
                "jsonrpc": "2.0",
                "id": _CALL_REQUEST_ID,
                "method": "tools/call",
                "params": {"name": tool, "arguments": arguments},
            },
        ]
        return "\n".join(json.dumps(m) for m in messages) + "\n"

    @staticmethod
    def _select_response(stdout: str, tool: str) -> Dict[str, Any]:
        """Pick the tool-call response out of the server's stdout.

        Prefers the message whose ``id`` matches the tool call; otherwise the
        last JSON object printed other than the initialize reply.
        """
        parsed: List[Dict[str, Any]] = []
        for line in stdout.strip().splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                message = json.loads(line)
            except json.JSONDecodeError:
                continue  # servers may log plain text to stdout
            if isinstance(message, dict):
                parsed.append(message)

        if not parsed:
            raise MeetingSourceError(
                f"Failed to parse MCP response. Output: {stdout[:500]}", tool=tool
            )

        for message in parsed:
            if message.get("id") == _CALL_REQUEST_ID:
                return message

        # the initialize reply is never a tool payload
        candidates = [m for m in parsed if m.get("id") != _INIT_REQUEST_ID]
        if not candidates:
            raise MeetingSourceError(
                f"MCP server returned no response to {tool}", tool=tool
            )
        return candidates[-1]

    @staticmethod
    def _unwrap_result(result: Any, tool: str) -> Any:
        """Decode MCP ``content`` blocks into plain Python data."""
        if not isinstance(result, dict):
            return result

        texts = [
            block.get("text", "")
            for block in result.get("content") or []
            if isinstance(block, dict) and block.get("type") == "text"
        ]

        if result.get("isError"):
            raise MeetingSourceError(
                "\n".join(texts) or "MCP tool reported an error",
                kind=MeetingSourceError.TOOL,
                tool=tool,
            )

        if "structuredContent" in result:
            return result["structuredContent"]

        if "content" not in result:
            return result

        joined = "\n".join(texts)
        try:
            return json.loads(joined)
        except json.JSONDecodeError:
            return joined
