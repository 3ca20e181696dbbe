# ec2_dashboard/fetchers/report_fetcher.py
import os
from typing import Any, Dict, Optional

import httpx

REPORT_URL = os.getenv("EC2_REPORT_URL", "http://localhost:8000/s3/ec2/report")
REPORT_TIMEOUT_SECONDS = float(os.getenv("EC2_REPORT_TIMEOUT_SECONDS", "30"))


def _client(transport: Optional[httpx.BaseTransport] = None) -> httpx.Client:
    return httpx.Client(timeout=REPORT_TIMEOUT_SECONDS, transport=transport)


def fetch_all_records(
    url: Optional[str] = None, transport: Optional[httpx.BaseTransport] = None
) -> Dict[str, Any]:
    """
    Returns the raw EC2 daily cost report, shaped as {"data": [row, ...]}.
    Raises httpx.HTTPError on transport failures or non-2xx answers;
    callers decide whether to absorb or forward them.
    """
    with _client(transport) as client:
        resp = client.get(url or REPORT_URL)
        resp.raise_for_status()
        return resp.json()
