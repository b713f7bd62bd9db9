import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)


def check_connection(base_url: str, api_key: str, timeout: float = 2.5,
                     session: Optional[requests.Session] = None) -> bool:
    """One reachability request against the table API root. Never raises."""
    http = session or requests
    try:
        url = f"{base_url.rstrip('/')}/rest/v1/"
        r = http.get(url, headers={"apikey": api_key}, timeout=timeout)
    except (requests.RequestException, AttributeError, TypeError, ValueError) as e:
        logger.info("Remote unreachable (%r): %s", base_url, e)
        return False
    if not r.ok:
        logger.info("Remote answered %s at %s; treating as offline", r.status_code, url)
        return False
    return True
