import logging
from typing import Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

UNAVAILABLE_TEXT = "Unable to fetch cryptocurrency data."


class MarketData:
    """Current prices from the CoinGecko simple price endpoint, rendered for a prompt"""

    def __init__(self, url: str, coins: List[str], timeout: float = 5.0, http=None):
        self.url = url
        self.coins = coins
        self.timeout = timeout
        self.http = http or requests.Session()

    def fetch(self) -> Optional[Dict[str, dict]]:
        params = {
            "ids": ",".join(self.coins),
            "vs_currencies": "usd",
            "include_market_cap": "true",
            "include_24hr_vol": "true",
            "include_24hr_change": "true",
        }
        try:
            response = self.http.get(self.url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Error fetching market data: {str(e)}")
            return None
        return data if isinstance(data, dict) else None

    def snapshot(self) -> str:
        return format_market_data(self.fetch())


def _billions(value) -> str:
    return f"${value / 1e9:.2f}B" if value else "N/A"


def format_market_data(data: Optional[Dict[str, dict]]) -> str:
    if not data:
        return UNAVAILABLE_TEXT

    lines = ["# Current Cryptocurrency Market Data", ""]
    for coin, values in data.items():
        price = values.get("usd")
        change = values.get("usd_24h_change")
        lines.append(f"## {coin.capitalize()}")
        lines.append(f"- Price: {f'${price:,.2f}' if price is not None else 'N/A'}")
        lines.append(f"- 24h Change: {f'{change:+.2f}%' if change is not None else 'N/A'}")
        lines.append(f"- Market Cap: {_billions(values.get('usd_market_cap'))}")
        lines.append(f"- 24h Volume: {_billions(values.get('usd_24h_vol'))}")
        lines.append("")
    return "\n".join(lines).rstrip()
