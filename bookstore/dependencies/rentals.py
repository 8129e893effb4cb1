from typing import Optional

from fastapi import Header, HTTPException, Request

from bookstore.schemas.rental_schemas import RequestInfo


def get_rental_token(x_rental_token: Optional[str] = Header(default=None)) -> str:
    """Digital rental security token, sent as a header so it stays out of URLs and access logs."""
    if not x_rental_token:
        raise HTTPException(status_code=401, detail="Missing rental security token")
    return x_rental_token


def get_request_info(
    request: Request,
    x_device_fingerprint: Optional[str] = Header(default=None),
) -> RequestInfo:
    return RequestInfo(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        device_fingerprint=x_device_fingerprint,
    )
