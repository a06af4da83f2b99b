# пишет: request_id / method / path / status; IP / UA; время обработки
# НЕ блокирует запрос; НЕ пишет в БД; /health не логируем

import json
import logging
import time
import uuid

from fastapi import Request

logger = logging.getLogger("calendar_booking.audit")

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = {"/health"}


async def audit_middleware(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    request.state.request_id = request_id
    start_ts = time.time()

    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id

    if request.url.path in QUIET_PATHS:
        return response

    record = {
        "request_id": request_id,
        "ts": int(start_ts),
        "method": request.method,
        "path": request.url.path,
        "status": response.status_code,
        "ip": request.headers.get("X-Real-IP") or (request.client.host if request.client else None),
        "ua": request.headers.get("User-Agent", ""),
        "duration_ms": int((time.time() - start_ts) * 1000),
    }

    level = logging.WARNING if response.status_code >= 500 else logging.INFO
    logger.log(level, json.dumps(record, ensure_ascii=False))

    return response
