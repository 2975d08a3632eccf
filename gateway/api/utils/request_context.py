"""Per-request caller context."""

from fastapi import Request


def client_ip(request: Request) -> str:
    """First hop as reported by the edge proxy, else the socket peer."""
    for header in ("cf-connecting-ip", "x-forwarded-for"):
        value = request.headers.get(header)
        if value:
            return value.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
