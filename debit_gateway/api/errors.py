"""Mapping from tagged domain errors to HTTP responses"""

from fastapi import HTTPException

from debit_gateway.domain.exceptions import DomainException, ErrorKind

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.BUSINESS_RULE: 400,
    ErrorKind.INSUFFICIENT_FUNDS: 422,
    ErrorKind.CONCURRENT_UPDATE: 409,
    ErrorKind.UPSTREAM_FAILURE: 503,
    ErrorKind.SERVICE_UNAVAILABLE: 503,
}


def to_http_exception(error: DomainException) -> HTTPException:
    status_code = STATUS_BY_KIND.get(error.kind, 500)
    if error.kind is ErrorKind.UPSTREAM_FAILURE:
        # Upstream details stay in the logs
        return HTTPException(status_code=status_code, detail="Downstream service unavailable")
    return HTTPException(status_code=status_code, detail=str(error))
