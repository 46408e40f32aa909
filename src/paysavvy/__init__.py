"""PaySavvy - layered URL risk scoring for payment and banking scam links."""

__version__ = "1.2.0"
