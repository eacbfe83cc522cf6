__all__ = ["ControlPanel"]

from pi_price.control.panel import ControlPanel
