from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, quote, unquote, urlencode

PRESIGN_PARAM = "presign"

PRESIGNED_PARAM_NAMES = (
    "X-Amz-Algorithm",
    "X-Amz-Content-Sha256",
    "X-Amz-Credential",
    "X-Amz-SignedHeaders",
    "X-Amz-Expires",
    "X-Amz-Signature",
    "X-Amz-Date",
    "X-Amz-Security-Token",
)


def parse_request_path(raw_path: str, prefix: str = "/tachyon/") -> str:
    """
    Turns the raw request path into an origin key.

    The leading slash is dropped, the path is URL-decoded and the
    ``/tachyon/`` routing segment collapses to ``/``.
    """
    key = unquote(raw_path[1:] if raw_path.startswith("/") else raw_path)
    if prefix:
        key = key.replace(prefix, "/", 1)
    return key


def parse_query(
    raw_query: Optional[str], fallback: Optional[Dict[str, Any]] = None
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Parses a raw query string keeping parameter order.

    Returns the parameters and the order in which their names first appeared.
    Repeated names keep the last value. When no raw query is available the
    ``fallback`` mapping (whose order may not match the request) is used.
    """
    params: Dict[str, Any] = {}
    order: List[str] = []
    if raw_query:
        for name, value in parse_qsl(raw_query, keep_blank_values=True):
            if name not in params:
                order.append(name)
            params[name] = value
    elif fallback:
        params = dict(fallback)
        order = list(params)
    return params, order


def merge_presign(params: Dict[str, Any], order: List[str]) -> Tuple[Dict[str, Any], List[str]]:
    """
    Expands a ``presign`` parameter into its own key/value pairs.

    Returns new containers; the inputs are left untouched.
    """
    if not params.get(PRESIGN_PARAM):
        return dict(params), list(order)
    merged = {k: v for k, v in params.items() if k != PRESIGN_PARAM}
    merged_order = [name for name in order if name != PRESIGN_PARAM]
    for name, value in parse_qsl(params[PRESIGN_PARAM], keep_blank_values=True):
        if name not in merged:
            merged_order.append(name)
        merged[name] = value
    return merged, merged_order


def presigned_params(params: Dict[str, Any]) -> Dict[str, str]:
    """Picks the ``X-Amz-*`` query parameters of a presigned request."""
    return {name: str(params[name]) for name in PRESIGNED_PARAM_NAMES if params.get(name)}


def build_origin_url(domain: str, key: str) -> str:
    return f"{domain.rstrip('/')}/{quote(key.lstrip('/'))}"


def build_s3_object_url(
    bucket: str, key: str, region: str, endpoint_url: Optional[str] = None
) -> str:
    """
    Object URL for a bucket, path-style when a custom endpoint is set
    (MinIO and friends) and virtual-hosted style on AWS.
    """
    quoted = quote(key.lstrip("/"))
    if endpoint_url:
        return f"{endpoint_url.rstrip('/')}/{bucket}/{quoted}"
    return f"https://{bucket}.s3.{region}.amazonaws.com/{quoted}"


def canonical_query(params: Dict[str, Any], exclude: Tuple[str, ...] = PRESIGNED_PARAM_NAMES) -> str:
    """Sorted query string used to key cached output."""
    items = sorted((k, str(v)) for k, v in params.items() if k not in exclude)
    return urlencode(items)
