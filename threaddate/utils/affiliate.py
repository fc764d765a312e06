from __future__ import annotations

from urllib.parse import quote

# eBay Partner Network tracking params
EBAY_AFFILIATE_PARAMS = "&mkcid=1&mkrid=711-53200-19255-0&toolid=20023&campid=5339135007&siteid=0&mkevt=1"
EBAY_CLOTHING_CATEGORY = 11450


def add_ebay_affiliate_tracking(url: str | None) -> str | None:
    if not url or "ebay.com" not in url:
        return url
    if "campid=" in url:
        return url
    return url + EBAY_AFFILIATE_PARAMS


def build_ebay_search_url(query: str, category: int = EBAY_CLOTHING_CATEGORY) -> str:
    return (
        f"https://www.ebay.com/sch/i.html?_nkw={quote(query)}"
        f"&_sacat={category}{EBAY_AFFILIATE_PARAMS}"
    )
