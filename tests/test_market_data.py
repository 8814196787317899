import requests

from neurotrader.services.market_data import MarketData, UNAVAILABLE_TEXT, format_market_data


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.payload


class FakeHttp:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def test_fetch_requests_configured_coins():
    http = FakeHttp(FakeResponse({"bitcoin": {"usd": 1.0}}))
    market = MarketData("https://prices.test/simple/price", ["bitcoin", "solana"], timeout=2.0, http=http)

    assert market.fetch() == {"bitcoin": {"usd": 1.0}}
    call = http.calls[0]
    assert call["params"]["ids"] == "bitcoin,solana"
    assert call["params"]["vs_currencies"] == "usd"
    assert call["timeout"] == 2.0


def test_snapshot_degrades_when_fetch_fails():
    market = MarketData("https://prices.test", ["bitcoin"], http=FakeHttp(error=requests.ConnectionError("offline")))
    assert market.snapshot() == UNAVAILABLE_TEXT

    market = MarketData("https://prices.test", ["bitcoin"], http=FakeHttp(FakeResponse({}, status_code=429)))
    assert market.snapshot() == UNAVAILABLE_TEXT


def test_format_market_data():
    text = format_market_data({
        "ethereum": {
            "usd": 3120.5,
            "usd_24h_change": -2.347,
            "usd_market_cap": 375_000_000_000,
            "usd_24h_vol": 12_500_000_000,
        },
        "cardano": {},
    })

    assert text.startswith("# Current Cryptocurrency Market Data")
    assert "## Ethereum" in text
    assert "- Price: $3,120.50" in text
    assert "- 24h Change: -2.35%" in text
    assert "- Market Cap: $375.00B" in text
    assert "- 24h Volume: $12.50B" in text
    assert "## Cardano\n- Price: N/A" in text
