# пишет: method / path / status; principal; IP / UA; время обработки
# НЕ блокирует запрос; НЕ пишет в БД

import time
import json
import logging

from fastapi import Request

logger = logging.getLogger("washbook.access")


def client_ip(request: Request) -> str | None:
    """Address set by the gateway, else the socket peer."""
    forwarded = request.headers.get("X-Real-IP")
    if forwarded:
        return forwarded
    return request.client.host if request.client else None


async def access_log_middleware(request: Request, call_next):
    start_ts = time.time()

    response = await call_next(request)

    duration_ms = int((time.time() - start_ts) * 1000)

    record = {
        "ts": int(start_ts),
        "method": request.method,
        "path": request.url.path,
        "status": response.status_code,
        "user_id": request.headers.get("X-User-Id"),
        "role": request.headers.get("X-User-Role"),
        "tenant_id": request.headers.get("X-Tenant-Id"),
        "ip": client_ip(request),
        "ua": request.headers.get("User-Agent", ""),
        "duration_ms": duration_ms,
    }

    logger.info(json.dumps(record, ensure_ascii=False))

    return response
