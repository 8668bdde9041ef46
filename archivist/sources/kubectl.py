"""kubectl backed list/watch for the Kubernetes and OpenShift APIs.

Lists go through ``kubectl get --raw <path>``. Watches stream
``kubectl get --raw "<path>?watch=true&resourceVersion=N"`` line by line;
every line is one JSON watch event.
"""

from __future__ import annotations

import asyncio
import json
import logging
import subprocess
from collections.abc import AsyncIterator
from urllib.parse import urlencode

from archivist.constants.timeouts import CLUSTER_REQUEST_TIMEOUT, KUBECTL_COMMAND_TIMEOUT
from archivist.exceptions import ListWatchError
from archivist.sources.base import ListResult, ListWatch, WatchEvent
from archivist.utils.log import LoggerLike, bind_logger

logger = logging.getLogger(__name__)

# Watch lines carry whole objects; replication controllers with large pod
# templates easily exceed asyncio's 64 KiB default line limit.
_WATCH_LINE_LIMIT = 16 * 1024 * 1024


class KubectlListWatch(ListWatch):
    """List/watch one API collection through the kubectl binary."""

    def __init__(
        self,
        api_path: str,
        *,
        context: str | None = None,
        kubectl: str = "kubectl",
        request_timeout: str = CLUSTER_REQUEST_TIMEOUT,
        command_timeout: int = KUBECTL_COMMAND_TIMEOUT,
        logger: LoggerLike | None = None,
    ) -> None:
        self.api_path = api_path
        self.context = context
        self._kubectl = kubectl
        self._request_timeout = request_timeout
        self._command_timeout = command_timeout
        self._log = bind_logger(logger or logging.getLogger(__name__), path=api_path)

    def _base_cmd(self) -> list[str]:
        cmd = [self._kubectl]
        if self.context:
            cmd.extend(["--context", self.context])
        return cmd

    def _run_kubectl_sync(self, args: tuple[str, ...]) -> str:
        """Run a kubectl command synchronously (thread-safe wrapper target)."""
        cmd = self._base_cmd()
        cmd.extend(args)
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, timeout=self._command_timeout
            )
        except subprocess.TimeoutExpired as exc:
            raise ListWatchError(f"kubectl timed out after {exc.timeout}s") from exc
        except OSError as exc:
            raise ListWatchError(f"cannot run kubectl: {exc}") from exc
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise ListWatchError(stderr or "kubectl command failed")
        return result.stdout

    async def get_raw(self, path: str) -> str:
        return await asyncio.to_thread(
            self._run_kubectl_sync,
            ("get", "--raw", path, f"--request-timeout={self._request_timeout}"),
        )

    async def list(self) -> ListResult:
        output = await self.get_raw(self.api_path)
        try:
            data = json.loads(output)
        except json.JSONDecodeError as exc:
            raise ListWatchError(f"invalid list response for {self.api_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ListWatchError(f"unexpected list response for {self.api_path}")
        items = data.get("items") or []
        resource_version = str((data.get("metadata") or {}).get("resourceVersion", ""))
        self._log.debug("listed %d objects at resourceVersion %s", len(items), resource_version)
        return ListResult(items=items, resource_version=resource_version)

    def watch_path(self, resource_version: str) -> str:
        query = {"watch": "true", "allowWatchBookmarks": "true"}
        if resource_version:
            query["resourceVersion"] = resource_version
        return f"{self.api_path}?{urlencode(query)}"

    async def watch(self, resource_version: str) -> AsyncIterator[WatchEvent]:
        # The watch is long-lived, so no --request-timeout here.
        cmd = self._base_cmd()
        cmd.extend(["get", "--raw", self.watch_path(resource_version)])
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=_WATCH_LINE_LIMIT,
            )
        except OSError as exc:
            raise ListWatchError(f"cannot run kubectl: {exc}") from exc

        if process.stdout is None or process.stderr is None:
            raise ListWatchError("kubectl watch started without output pipes")

        # Read stderr concurrently with stdout.
        stderr_reader = asyncio.create_task(process.stderr.read())
        self._log.debug("watch started from resourceVersion %s", resource_version or "<none>")
        try:
            async for raw_line in process.stdout:
                line = raw_line.strip()
                if not line:
                    continue
                try:
                    payload = json.loads(line)
                except json.JSONDecodeError as exc:
                    raise ListWatchError(f"invalid watch event: {exc}") from exc
                event = WatchEvent.from_api(payload)
                event.raise_for_error()
                yield event

            returncode = await process.wait()
            stderr = await stderr_reader
            if returncode != 0:
                message = stderr.decode(errors="replace").strip()
                raise ListWatchError(message or f"kubectl watch exited with {returncode}")
            self._log.debug("watch stream closed by server")
        finally:
            if process.returncode is None:
                process.kill()
                await process.wait()
            if not stderr_reader.done():
                stderr_reader.cancel()


async def check_cluster_connection(
    *,
    context: str | None = None,
    kubectl: str = "kubectl",
    timeout: float = 12.0,
) -> bool:
    """Return True when the API server answers ``/version``."""
    list_watch = KubectlListWatch("/version", context=context, kubectl=kubectl)
    try:
        await asyncio.wait_for(list_watch.get_raw("/version"), timeout=timeout)
    except (ListWatchError, asyncio.TimeoutError) as exc:
        logger.error("cluster connection check failed: %s", exc)
        return False
    return True


__all__ = [
    "KubectlListWatch",
    "check_cluster_connection",
]
