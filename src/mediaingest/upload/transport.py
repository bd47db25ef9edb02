"""Sync and async HTTP transports for the storage provider's upload API.

Each transport handles the full lifecycle of one unsigned upload:

1. Build the multipart form (file, upload preset, folder, resource type and
   optional format/quality hints).
2. ``POST`` it to ``{base_url}/{cloud_name}/{resource_type}/upload``.
3. On ``2xx`` -- return the ``secure_url`` from the JSON body.
4. On ``429`` / ``5xx`` / network error -- exponential backoff and retry.
5. On ``401`` / ``403`` -- raise :class:`UploadAuthError`.
6. On ``413`` -- raise :class:`TooLargeError`.
7. On any other ``4xx`` -- raise :class:`UploadBadRequestError`.
8. On max attempts exceeded -- raise :class:`UploadTransportError`.

Both transports also offer :meth:`probe`, a ``HEAD`` request used to check
that a pasted image URL is reachable.
"""

from __future__ import annotations

import json as _json
import sys
import time
from typing import Any

import httpx

from mediaingest.config import MediaIngestConfig
from mediaingest.errors import (
    TooLargeError,
    UploadAuthError,
    UploadBadRequestError,
    UploadTransportError,
)
from mediaingest.models import LocalFile, MediaType
from mediaingest.observability import NoopMetricsHook, get_logger
from mediaingest.utils.redact import redact
from mediaingest.validate import is_persistable_url

from .retries import (
    RETRYABLE_EXCEPTIONS,
    RETRYABLE_STATUSES,
    compute_backoff,
    parse_retry_after,
    should_retry,
)

log = get_logger("mediaingest.upload")

_CONVERTIBLE_MIMES = frozenset({"image/heic", "image/heif"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def build_form(
    config: MediaIngestConfig,
    file: LocalFile,
    media_type: MediaType,
    mime_type: str | None = None,
    convert_to: str | None = None,
) -> tuple[dict[str, str], dict[str, tuple[str, bytes, str]]]:
    """Return the ``(data, files)`` pair for an upload request.

    HEIC/HEIF images get a ``format`` field (``config.convert_heic_to``
    unless *convert_to* overrides it) so the provider stores a
    browser-renderable copy.
    """
    resource_type = media_type.value
    mime = mime_type or file.mime_type or "application/octet-stream"
    data: dict[str, str] = {
        "upload_preset": config.upload_preset,
        "folder": config.video_folder if media_type == MediaType.VIDEO else config.image_folder,
        "resource_type": resource_type,
    }
    if media_type == MediaType.IMAGE:
        target = convert_to
        if target is None and mime.lower() in _CONVERTIBLE_MIMES:
            target = config.convert_heic_to
        if target:
            data["format"] = target
        if config.quality_hint:
            data["quality"] = config.quality_hint
    files = {"file": (file.name, file.data, mime)}
    return data, files


def _provider_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:500]
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if body.get("message"):
            return str(body["message"])
    return response.text[:500]


def _raise_for_status(response: httpx.Response, name: str, media_type: MediaType) -> None:
    """Raise the typed error for a non-retryable, non-2xx response."""
    status = response.status_code
    provider_message = _provider_message(response)
    context = {"name": name, "status_code": status, "provider_message": provider_message}

    if status in (401, 403):
        raise UploadAuthError(
            message=(
                f"Upload of {name} was refused by the storage provider "
                f"(status {status}). Check the cloud name and upload preset."
            ),
            context=context,
        )
    if status == 413:
        raise TooLargeError(
            message=f"{media_type.value.capitalize()} {name} is too large for the storage provider",
            context=context,
        )
    if status >= 500:
        raise UploadTransportError(
            message=f"Upload of {name} failed: the storage provider answered {status}",
            context=context,
        )
    raise UploadBadRequestError(
        message=f"Upload of {name} was rejected: {provider_message}",
        context=context,
    )


def _secure_url(response: httpx.Response, name: str) -> str:
    """Extract the canonical HTTPS URL from a successful upload response."""
    try:
        body = response.json()
    except ValueError as exc:
        raise UploadTransportError(
            message=f"Upload of {name} returned an unreadable response",
            context={"name": name, "status_code": response.status_code},
            cause=exc,
        ) from exc
    url = body.get("secure_url") if isinstance(body, dict) else None
    if not is_persistable_url(url):
        raise UploadTransportError(
            message=f"Upload of {name} returned no usable https URL",
            context={"name": name, "status_code": response.status_code, "secure_url": url},
        )
    return url


def _dump_payload(
    url: str,
    form: dict[str, Any],
    response_status: int | None,
    response_body: Any | None,
    secret: str | None = None,
) -> None:
    """Write a redacted debug dump of the request/response to stderr."""
    dump: dict[str, Any] = {"method": "POST", "url": url, "request_form": form}
    if response_status is not None:
        dump["response_status"] = response_status
    if response_body is not None:
        dump["response_body"] = response_body
    print(
        _json.dumps(redact(dump, secret), indent=2, default=str),
        file=sys.stderr,
    )


def _emit_debug_dump(
    config: MediaIngestConfig,
    url: str,
    data: dict[str, str],
    files: dict[str, Any],
    response: httpx.Response,
) -> None:
    if not config.debug_dump_payload:
        return
    try:
        resp_body = response.json()
    except ValueError:
        resp_body = response.text[:1000]
    _dump_payload(
        url, {**data, **files}, response.status_code, resp_body,
        secret=config.upload_preset or None,
    )


def _require_credentials(config: MediaIngestConfig, name: str) -> None:
    if not config.cloud_name or not config.upload_preset:
        raise UploadAuthError(
            message=(
                f"Cannot upload {name}: the storage provider is not configured "
                "(cloud_name and upload_preset are required)"
            ),
            context={"name": name},
        )


def _handle_network_exception(
    config: MediaIngestConfig,
    metrics: Any,
    name: str,
    tags: dict[str, str],
    exc: Exception,
    attempt: int,
) -> float:
    """Return the backoff delay when a network error is retryable.

    Raises :class:`UploadTransportError` once retries are exhausted.
    """
    metrics.increment("mediaingest.requests_total", tags={**tags, "status": "error"})
    log.warning(
        "Upload network error",
        extra={
            "extra_fields": {
                "op": "upload",
                "name": name,
                "attempt": attempt + 1,
                "error": str(exc),
            }
        },
    )
    if should_retry(None, exc, attempt, config.retry_max_attempts):
        metrics.increment("mediaingest.retries_total", tags={**tags, "reason": "network_error"})
        return compute_backoff(
            attempt,
            base=config.retry_base_delay,
            maximum=config.retry_max_delay,
            jitter=config.retry_jitter,
        )
    raise UploadTransportError(
        message=f"Upload of {name} failed: network error ({exc})",
        context={"name": name, "attempts": attempt + 1, "last_status_code": None},
        cause=exc,
    ) from exc


def _record_response(
    metrics: Any,
    tags: dict[str, str],
    response: httpx.Response,
    elapsed_ms: float,
) -> None:
    status_tags = {**tags, "status": str(response.status_code)}
    metrics.increment("mediaingest.requests_total", tags=status_tags)
    metrics.timing("mediaingest.request_duration_ms", elapsed_ms, tags=status_tags)


def _retry_delay(
    config: MediaIngestConfig,
    metrics: Any,
    name: str,
    tags: dict[str, str],
    response: httpx.Response,
    attempt: int,
) -> float:
    retry_after: float | None = None
    reason = "server_error"
    if response.status_code == 429:
        retry_after = parse_retry_after(response)
        reason = "rate_limited"
    log.warning(
        "Upload attempt failed, retrying",
        extra={
            "extra_fields": {
                "op": "upload",
                "name": name,
                "status_code": response.status_code,
                "retry_after": retry_after,
                "attempt": attempt + 1,
            }
        },
    )
    metrics.increment("mediaingest.retries_total", tags={**tags, "reason": reason})
    return compute_backoff(
        attempt,
        base=config.retry_base_delay,
        maximum=config.retry_max_delay,
        jitter=config.retry_jitter,
        retry_after=retry_after,
    )


def _exhausted(
    name: str,
    attempts: int,
    last_status: int | None,
    last_exception: Exception | None,
) -> UploadTransportError:
    detail = f"last error: {last_exception}" if last_exception else f"last status: {last_status}"
    return UploadTransportError(
        message=f"Upload of {name} failed after {attempts} attempts ({detail})",
        context={"name": name, "attempts": attempts, "last_status_code": last_status},
        cause=last_exception,
    )


def _log_success(name: str, media_type: MediaType, url: str, attempt: int) -> None:
    log.info(
        "Upload succeeded",
        extra={
            "extra_fields": {
                "op": "upload",
                "name": name,
                "media_type": media_type.value,
                "url": url,
                "attempts": attempt + 1,
            }
        },
    )


def _client_kwargs(config: MediaIngestConfig) -> dict[str, Any]:
    proxy: httpx.URL | str | None = config.http_proxy
    return {
        "timeout": httpx.Timeout(config.timeout_seconds),
        "proxy": proxy,
        "headers": {"Accept": "application/json"},
    }


# ---------------------------------------------------------------------------
# Sync transport
# ---------------------------------------------------------------------------

class UploadTransport:
    """Synchronous upload transport with retry.

    Parameters
    ----------
    config:
        A :class:`MediaIngestConfig` controlling endpoint, credentials,
        retries and timeouts.
    """

    def __init__(self, config: MediaIngestConfig) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._client = httpx.Client(**_client_kwargs(config))

    # -- public API --------------------------------------------------------

    def upload(
        self,
        file: LocalFile,
        media_type: MediaType,
        *,
        mime_type: str | None = None,
        convert_to: str | None = None,
    ) -> str:
        """Upload *file* and return its canonical HTTPS URL.

        Parameters
        ----------
        file:
            The local file to upload.
        media_type:
            Selects the ``image`` or ``video`` endpoint and folder.
        mime_type:
            Effective MIME type from classification; falls back to the
            declared type.
        convert_to:
            Explicit delivery format for the stored image.

        Raises
        ------
        UploadAuthError
            On 401/403 or missing credentials.
        TooLargeError
            On 413.
        UploadBadRequestError
            On 400 and other non-retryable 4xx responses.
        UploadTransportError
            On network failure or 429/5xx after exhausting retries, or when
            the response carries no usable URL.
        """
        config = self._config
        _require_credentials(config, file.name)
        url = config.upload_url(media_type.value)
        data, files = build_form(config, file, media_type, mime_type, convert_to)
        tags = {"resource_type": media_type.value}
        max_attempts = config.retry_max_attempts
        last_exception: Exception | None = None
        last_status: int | None = None

        for attempt in range(max_attempts):
            t0 = time.monotonic()
            try:
                response = self._client.post(url, data=data, files=files)
                elapsed_ms = (time.monotonic() - t0) * 1000
            except RETRYABLE_EXCEPTIONS as exc:
                last_exception, last_status = exc, None
                time.sleep(_handle_network_exception(
                    config, self._metrics, file.name, tags, exc, attempt,
                ))
                continue
            except httpx.RequestError as exc:
                raise UploadTransportError(
                    message=f"Upload of {file.name} failed: {exc}",
                    context={"name": file.name, "attempts": attempt + 1, "last_status_code": None},
                    cause=exc,
                ) from exc

            last_status, last_exception = response.status_code, None
            _record_response(self._metrics, tags, response, elapsed_ms)
            _emit_debug_dump(config, url, data, files, response)

            if 200 <= response.status_code < 300:
                secure_url = _secure_url(response, file.name)
                _log_success(file.name, media_type, secure_url, attempt)
                return secure_url

            if response.status_code not in RETRYABLE_STATUSES:
                _raise_for_status(response, file.name, media_type)

            if not should_retry(response.status_code, None, attempt, max_attempts):
                break

            time.sleep(_retry_delay(
                config, self._metrics, file.name, tags, response, attempt,
            ))

        raise _exhausted(file.name, max_attempts, last_status, last_exception)

    def probe(self, url: str) -> str | None:
        """Issue a ``HEAD`` request; return the ``Content-Type`` on 2xx.

        Returns ``None`` when the URL is unreachable or answers with an
        error status.
        """
        try:
            response = self._client.head(url, follow_redirects=True)
        except httpx.HTTPError as exc:
            log.debug(
                "Probe failed",
                extra={"extra_fields": {"op": "probe", "url": url, "error": str(exc)}},
            )
            return None
        if not 200 <= response.status_code < 300:
            return None
        return response.headers.get("content-type", "")

    def close(self) -> None:
        """Close the underlying HTTP client and release resources."""
        self._client.close()

    def __enter__(self) -> UploadTransport:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Async transport
# ---------------------------------------------------------------------------

class AsyncUploadTransport:
    """Asynchronous upload transport with retry.

    Mirrors :class:`UploadTransport` but uses ``httpx.AsyncClient`` and
    ``asyncio.sleep`` so a batch can keep several uploads in flight.
    """

    def __init__(self, config: MediaIngestConfig) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._client = httpx.AsyncClient(**_client_kwargs(config))

    # -- public API --------------------------------------------------------

    async def upload(
        self,
        file: LocalFile,
        media_type: MediaType,
        *,
        mime_type: str | None = None,
        convert_to: str | None = None,
    ) -> str:
        """Upload *file* and return its canonical HTTPS URL (async).

        See :meth:`UploadTransport.upload`; the semantics are identical.
        """
        import asyncio

        config = self._config
        _require_credentials(config, file.name)
        url = config.upload_url(media_type.value)
        data, files = build_form(config, file, media_type, mime_type, convert_to)
        tags = {"resource_type": media_type.value}
        max_attempts = config.retry_max_attempts
        last_exception: Exception | None = None
        last_status: int | None = None

        for attempt in range(max_attempts):
            t0 = time.monotonic()
            try:
                response = await self._client.post(url, data=data, files=files)
                elapsed_ms = (time.monotonic() - t0) * 1000
            except RETRYABLE_EXCEPTIONS as exc:
                last_exception, last_status = exc, None
                await asyncio.sleep(_handle_network_exception(
                    config, self._metrics, file.name, tags, exc, attempt,
                ))
                continue
            except httpx.RequestError as exc:
                raise UploadTransportError(
                    message=f"Upload of {file.name} failed: {exc}",
                    context={"name": file.name, "attempts": attempt + 1, "last_status_code": None},
                    cause=exc,
                ) from exc

            last_status, last_exception = response.status_code, None
            _record_response(self._metrics, tags, response, elapsed_ms)
            _emit_debug_dump(config, url, data, files, response)

            if 200 <= response.status_code < 300:
                secure_url = _secure_url(response, file.name)
                _log_success(file.name, media_type, secure_url, attempt)
                return secure_url

            if response.status_code not in RETRYABLE_STATUSES:
                _raise_for_status(response, file.name, media_type)

            if not should_retry(response.status_code, None, attempt, max_attempts):
                break

            await asyncio.sleep(_retry_delay(
                config, self._metrics, file.name, tags, response, attempt,
            ))

        raise _exhausted(file.name, max_attempts, last_status, last_exception)

    async def probe(self, url: str) -> str | None:
        """Async equivalent of :meth:`UploadTransport.probe`."""
        try:
            response = await self._client.head(url, follow_redirects=True)
        except httpx.HTTPError as exc:
            log.debug(
                "Probe failed",
                extra={"extra_fields": {"op": "probe", "url": url, "error": str(exc)}},
            )
            return None
        if not 200 <= response.status_code < 300:
            return None
        return response.headers.get("content-type", "")

    async def close(self) -> None:
        """Close the underlying async HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncUploadTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
