from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlsplit

import httpx

from studio.app.config import get_settings
from studio.app.domain.generation import GenerationResult
from studio.app.ports.generation_api import FileParts, GenerationApi, GenerationApiError

log = logging.getLogger(__name__)

# Video links end up in src/href attributes; relative paths are allowed.
ALLOWED_VIDEO_SCHEMES = ("http", "https", "")


class HttpGenerationApi(GenerationApi):
    """
    Multipart POST to the external generation endpoint.
    Any non-2xx status is a failure; there is no retry.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        timeout_sec: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout_sec = timeout_sec
        self.transport = transport
        self.headers = dict(headers or {})

    async def generate(
        self,
        *,
        fields: Dict[str, str],
        files: FileParts,
        request_id: str,
    ) -> GenerationResult:
        start = time.time()
        log.info(
            "[Generate] submit start request_id=%s provider=%s",
            request_id,
            fields.get("provider"),
        )
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_sec,
                transport=self.transport,
            ) as client:
                r = await client.post(
                    self.endpoint,
                    files=_multipart_parts(fields, files),
                    headers=self.headers,
                )
        except httpx.HTTPError as exc:
            raise GenerationApiError(
                "generation_request_failed",
                "Failed to generate video",
                raw=str(exc),
            ) from exc

        if not r.is_success:
            raise GenerationApiError(
                "generation_http_error",
                "Failed to generate video",
                raw={"status": r.status_code, "body": r.text[:500]},
            )

        try:
            data = r.json()
        except ValueError as exc:
            raise GenerationApiError(
                "generation_bad_json",
                "Generation response was not JSON",
                raw=r.text[:500],
            ) from exc

        result = _parse_result(data)
        elapsed = int((time.time() - start) * 1000)
        log.info(
            "[Generate] submit done request_id=%s videos=%s elapsed_ms=%s",
            request_id,
            len(result.videos),
            elapsed,
        )
        return result


def _multipart_parts(fields: Dict[str, str], files: FileParts) -> List[Tuple[str, Any]]:
    # Plain fields go out as filename-less parts so the body is multipart
    # even when no file is attached.
    parts: List[Tuple[str, Any]] = [(name, (None, value)) for name, value in fields.items()]
    parts.extend((name, part) for name, part in (files or {}).items())
    return parts


def _parse_result(data: Any) -> GenerationResult:
    if not isinstance(data, dict):
        raise GenerationApiError("generation_bad_payload", "Unexpected generation response", raw=data)

    videos: List[str] = []
    for item in data.get("videos") or []:
        url = (item.get("url") or item.get("video_url")) if isinstance(item, dict) else item
        if not isinstance(url, str) or not url.strip():
            continue
        url = url.strip()
        if _video_scheme(url) not in ALLOWED_VIDEO_SCHEMES:
            log.warning("[Generate] dropped video url with unsupported scheme url=%.80s", url)
            continue
        videos.append(url)

    cost = data.get("cost")
    try:
        cost = float(cost) if cost is not None else None
    except (TypeError, ValueError):
        cost = None

    provider = data.get("provider")
    return GenerationResult(
        videos=videos,
        provider=provider if isinstance(provider, str) and provider else None,
        cost=cost,
    )


def _video_scheme(url: str) -> Optional[str]:
    try:
        return urlsplit(url).scheme.lower()
    except ValueError:
        return None


def build_default_api() -> HttpGenerationApi:
    settings = get_settings()
    timeout = settings.generation_timeout_sec or None
    return HttpGenerationApi(settings.generation_api_url, timeout_sec=timeout)
