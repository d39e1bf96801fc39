"""Invoice price computation for the two payment currencies (USD cents and Telegram Stars)."""
from decimal import Decimal, ROUND_HALF_UP

USD_TO_STARS_RATE = Decimal("113")  # Approx. 1 USD = 113 Telegram Stars
COIN_TO_USD_RATE = Decimal("0.001")  # 1000 coins = 1 USD
MIN_STARS_PRICE = 1


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _to_decimal(price) -> Decimal:
    return Decimal(str(price))


def usd_to_cents(price_usd) -> int:
    """Physical goods: USD price to minor units."""
    return _round_half_up(_to_decimal(price_usd) * 100)


def usd_to_stars(price_usd) -> int:
    """Coin and spin packs: USD price to Stars, at least 1."""
    stars = _round_half_up(_to_decimal(price_usd) * USD_TO_STARS_RATE)
    return max(MIN_STARS_PRICE, stars)


def coins_to_stars(price_coins) -> int:
    """Sticker packs: coin price to USD, then to Stars, at least 1."""
    stars = _round_half_up(_to_decimal(price_coins) * COIN_TO_USD_RATE * USD_TO_STARS_RATE)
    return max(MIN_STARS_PRICE, stars)
