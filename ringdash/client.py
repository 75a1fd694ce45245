"""
Gateway client
==============

Thin aiohttp wrapper over the store's HTTP gateway:

    GET  /status               -> SystemSnapshot
    POST /config {"mode": m}   -> acknowledgement (body ignored)
    GET  /put?key=&value=      -> plain-text result
    GET  /get?key=             -> plain-text value, any non-200 = not found

Transport failures, non-success statuses and an undecodable /status body all
surface as BackendError; callers never see aiohttp exceptions.  Plain-text
replies decode with replacement characters.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass

import aiohttp

from .model import MODES, BackendError, MalformedResponse, SystemSnapshot, parse_snapshot


@dataclass(frozen=True)
class GetResult:
    key: str
    found: bool
    value: str = ""
    status: int = 200


class BackendClient:
    def __init__(self, base_url: str, timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.timeout)

    async def fetch_status(self) -> SystemSnapshot:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(self._url("/status"), timeout=self._timeout()) as resp:
                    if resp.status != 200:
                        raise BackendError(f"/status returned {resp.status}", resp.status)
                    body = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise BackendError(f"/status unreachable: {_reason(e)}") from e
        try:
            payload = json.loads(body)
        except ValueError as e:  # includes UnicodeDecodeError
            raise MalformedResponse(f"/status is not JSON: {e}") from e
        return parse_snapshot(payload)

    async def set_mode(self, mode: str) -> None:
        if mode not in MODES:
            raise ValueError(f"unknown mode {mode!r}; expected one of {', '.join(MODES)}")
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self._url("/config"),
                    json={"mode": mode},
                    timeout=self._timeout(),
                ) as resp:
                    await resp.read()
                    if resp.status >= 400:
                        raise BackendError(f"/config returned {resp.status}", resp.status)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise BackendError(f"/config unreachable: {_reason(e)}") from e

    async def put(self, key: str, value: str) -> str:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    self._url("/put"),
                    params={"key": key, "value": value},
                    timeout=self._timeout(),
                ) as resp:
                    text = (await resp.text(errors="replace")).strip()
                    if resp.status != 200:
                        raise BackendError(f"{resp.status} {text}".strip(), resp.status)
                    return text
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise BackendError(f"/put unreachable: {_reason(e)}") from e

    async def get(self, key: str) -> GetResult:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    self._url("/get"),
                    params={"key": key},
                    timeout=self._timeout(),
                ) as resp:
                    text = (await resp.text(errors="replace")).rstrip("\n")
                    if resp.status != 200:
                        return GetResult(key, found=False, status=resp.status)
                    return GetResult(key, found=True, value=text)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise BackendError(f"/get unreachable: {_reason(e)}") from e


def _reason(e: BaseException) -> str:
    return str(e) or type(e).__name__
