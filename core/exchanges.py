# core/exchanges.py
"""
core/exchanges.py
===========================================================
Static universes the engine aggregates over.

- EXCHANGES: ExchangeDescriptor per tracked exchange (Yahoo index symbol,
  IANA timezone, local session window as zero-padded HH:MM)
- CRYPTO_PAIRS: ticker pairs fetched in one batched snapshot call
- MOVERS: simulated equities universe for the movers board
- HOT_EVENTS: geolocated macro events
- COUNTRY_SEEDS / REMAINING_COUNTRIES: activity heat ranges per ISO-2 code

Loaded once at import, never mutated.
"""

from __future__ import annotations

from typing import Dict, Tuple

from core.schemas import CryptoPair, ExchangeDescriptor, HotEvent


def _ex(
    id_: str,
    name: str,
    index_name: str,
    country: str,
    timezone: str,
    currency: str,
    open_time: str,
    close_time: str,
    yahoo_symbol: str,
    lat: float,
    lon: float,
) -> ExchangeDescriptor:
    return ExchangeDescriptor(
        id=id_,
        name=name,
        index_name=index_name,
        country=country,
        timezone=timezone,
        currency=currency,
        open_time=open_time,
        close_time=close_time,
        yahoo_symbol=yahoo_symbol,
        latitude=lat,
        longitude=lon,
    )


# ---------------------------------------------------------------------------
# Exchanges
# ---------------------------------------------------------------------------
EXCHANGES: Tuple[ExchangeDescriptor, ...] = (
    _ex("nyse", "New York Stock Exchange", "S&P 500", "US", "America/New_York", "USD", "09:30", "16:00", "^GSPC", 40.7069, -74.0113),
    _ex("nasdaq", "NASDAQ", "NASDAQ Composite", "US", "America/New_York", "USD", "09:30", "16:00", "^IXIC", 40.7569, -73.9845),
    _ex("lse", "London Stock Exchange", "FTSE 100", "GB", "Europe/London", "GBP", "08:00", "16:30", "^FTSE", 51.5155, -0.0992),
    _ex("xetra", "Deutsche Börse Xetra", "DAX", "DE", "Europe/Berlin", "EUR", "09:00", "17:30", "^GDAXI", 50.1109, 8.6821),
    _ex("euronext", "Euronext Paris", "CAC 40", "FR", "Europe/Paris", "EUR", "09:00", "17:30", "^FCHI", 48.8698, 2.3413),
    _ex("jpx", "Japan Exchange Group", "Nikkei 225", "JP", "Asia/Tokyo", "JPY", "09:00", "15:00", "^N225", 35.6828, 139.7784),
    _ex("hkex", "Hong Kong Exchanges", "Hang Seng", "HK", "Asia/Hong_Kong", "HKD", "09:30", "16:00", "^HSI", 22.2830, 114.1588),
    _ex("sse", "Shanghai Stock Exchange", "SSE Composite", "CN", "Asia/Shanghai", "CNY", "09:30", "15:00", "000001.SS", 31.2397, 121.4998),
    _ex("nse", "National Stock Exchange of India", "NIFTY 50", "IN", "Asia/Kolkata", "INR", "09:15", "15:30", "^NSEI", 19.0600, 72.8600),
    _ex("bse", "Bombay Stock Exchange", "SENSEX", "IN", "Asia/Kolkata", "INR", "09:15", "15:30", "^BSESN", 18.9294, 72.8331),
    _ex("asx", "Australian Securities Exchange", "S&P/ASX 200", "AU", "Australia/Sydney", "AUD", "10:00", "16:00", "^AXJO", -33.8651, 151.2099),
    _ex("tsx", "Toronto Stock Exchange", "S&P/TSX Composite", "CA", "America/Toronto", "CAD", "09:30", "16:00", "^GSPTSE", 43.6487, -79.3817),
    _ex("krx", "Korea Exchange", "KOSPI", "KR", "Asia/Seoul", "KRW", "09:00", "15:30", "^KS11", 37.5226, 126.9250),
    _ex("sgx", "Singapore Exchange", "STI", "SG", "Asia/Singapore", "SGD", "09:00", "17:00", "^STI", 1.2789, 103.8536),
    _ex("b3", "B3 Brasil Bolsa Balcão", "Bovespa", "BR", "America/Sao_Paulo", "BRL", "10:00", "17:00", "^BVSP", -23.5475, -46.6361),
    _ex("tadawul", "Saudi Exchange (Tadawul)", "TASI", "SA", "Asia/Riyadh", "SAR", "10:00", "15:00", "^TASI.SR", 24.6908, 46.6853),
    _ex("six", "SIX Swiss Exchange", "SMI", "CH", "Europe/Zurich", "CHF", "09:00", "17:30", "^SSMI", 47.3720, 8.5310),
    _ex("jse", "Johannesburg Stock Exchange", "JSE Top 40", "ZA", "Africa/Johannesburg", "ZAR", "09:00", "17:00", "^J200.JO", -26.1076, 28.0567),
)


# ---------------------------------------------------------------------------
# Crypto pairs
# ---------------------------------------------------------------------------
CRYPTO_PAIRS: Tuple[CryptoPair, ...] = (
    CryptoPair(pair="BTCUSDT", symbol="BTC", name="Bitcoin"),
    CryptoPair(pair="ETHUSDT", symbol="ETH", name="Ethereum"),
    CryptoPair(pair="SOLUSDT", symbol="SOL", name="Solana"),
    CryptoPair(pair="BNBUSDT", symbol="BNB", name="BNB"),
    CryptoPair(pair="XRPUSDT", symbol="XRP", name="XRP"),
    CryptoPair(pair="ADAUSDT", symbol="ADA", name="Cardano"),
    CryptoPair(pair="AVAXUSDT", symbol="AVAX", name="Avalanche"),
    CryptoPair(pair="LINKUSDT", symbol="LINK", name="Chainlink"),
    CryptoPair(pair="DOGEUSDT", symbol="DOGE", name="Dogecoin"),
    CryptoPair(pair="DOTUSDT", symbol="DOT", name="Polkadot"),
)


# ---------------------------------------------------------------------------
# Simulated movers: (ticker, name, sector)
# ---------------------------------------------------------------------------
MOVERS: Tuple[Tuple[str, str, str], ...] = (
    ("AAPL", "Apple Inc.", "Technology"),
    ("MSFT", "Microsoft", "Technology"),
    ("NVDA", "NVIDIA", "Semiconductors"),
    ("TSLA", "Tesla", "Auto/EV"),
    ("META", "Meta Platforms", "Social Media"),
    ("AMZN", "Amazon", "E-Commerce"),
    ("GOOGL", "Alphabet", "Technology"),
    ("JPM", "JPMorgan Chase", "Finance"),
    ("NFLX", "Netflix", "Streaming"),
    ("AMD", "AMD", "Semiconductors"),
    ("RELIANCE", "Reliance Industries", "Conglomerate"),
    ("TCS", "TCS", "IT Services"),
)

MOVER_BASE_MIN = 60.0
MOVER_BASE_SPAN = 400.0
MOVER_CHANGE_MIN = -4.0
MOVER_CHANGE_SPAN = 10.0
MOVER_VOLUME_MIN = 5_000_000
MOVER_VOLUME_SPAN = 80_000_000


# ---------------------------------------------------------------------------
# Hot events
# ---------------------------------------------------------------------------
HOT_EVENTS: Tuple[HotEvent, ...] = (
    HotEvent(id=1, title="Oil prices spike", latitude=25.0, longitude=45.0),
    HotEvent(id=2, title="RBI rate announcement", latitude=19.076, longitude=72.878),
    HotEvent(id=3, title="US CPI data release", latitude=38.907, longitude=-77.04),
    HotEvent(id=4, title="Gold demand rising", latitude=-26.204, longitude=28.047),
    HotEvent(id=5, title="Geopolitical tensions", latitude=48.379, longitude=31.166),
    HotEvent(id=6, title="ECB rate decision", latitude=50.110, longitude=8.682),
    HotEvent(id=7, title="China PMI data", latitude=39.916, longitude=116.40),
)


# ---------------------------------------------------------------------------
# Country activity: iso2 -> (base, span); value = round(base + rand * span)
# ---------------------------------------------------------------------------
COUNTRY_SEEDS: Dict[str, Tuple[float, float]] = {
    "US": (60, 40), "GB": (50, 35), "DE": (45, 30), "FR": (42, 28), "JP": (55, 35),
    "CN": (65, 30), "HK": (50, 35), "IN": (58, 35), "AU": (45, 30), "CA": (48, 28),
    "KR": (50, 30), "SG": (52, 28), "BR": (35, 35), "RU": (20, 25), "SA": (40, 35),
    "AE": (45, 30), "ZA": (30, 30), "MX": (35, 30), "CH": (50, 20), "NL": (48, 25),
    "IT": (40, 28), "ES": (38, 28), "SE": (45, 22), "NO": (48, 22), "TH": (42, 28),
    "ID": (38, 28), "MY": (40, 25), "TR": (30, 30), "AR": (20, 20), "NG": (25, 25),
    "EG": (28, 22), "PK": (22, 20), "PL": (38, 22),
}

REMAINING_SEED: Tuple[float, float] = (25, 30)

REMAINING_COUNTRIES: Tuple[str, ...] = (
    "AF", "AL", "DZ", "AO", "AM", "AZ", "BY", "BA", "BJ", "BT", "BO", "BW", "BF", "BI", "CM", "CF", "TD",
    "CL", "CO", "CG", "HR", "CU", "CY", "DK", "EC", "GH", "GT", "GN", "GW", "HN", "HU", "IS", "IR", "IQ",
    "IL", "CI", "JM", "JO", "KZ", "KE", "KW", "KG", "LA", "LV", "LB", "LT", "LU", "MG", "MW", "ML", "MT",
    "MR", "MU", "MN", "ME", "MA", "MZ", "MM", "NA", "NP", "NZ", "NI", "NE", "OM", "PS", "PA", "PG", "PE",
    "PH", "PT", "PR", "QA", "RE", "RO", "RW", "SN", "RS", "SL", "SK", "SI", "SO", "SS", "LK", "SD", "SR",
    "TJ", "TZ", "TL", "TN", "TM", "UG", "UA", "UY", "UZ", "VE", "VN", "YE", "ZM", "ZW", "FI", "BE", "AT",
    "CZ", "GR", "IE", "BD", "ET",
)


__all__ = [
    "EXCHANGES",
    "CRYPTO_PAIRS",
    "MOVERS",
    "HOT_EVENTS",
    "COUNTRY_SEEDS",
    "REMAINING_SEED",
    "REMAINING_COUNTRIES",
]
