__all__ = ["PriceBroadcaster", "format_message"]

from pi_price.engine.broadcaster import PriceBroadcaster, format_message
