__all__ = ["OkxTickerFeed"]

from pi_price.feed.okx_ticker import OkxTickerFeed
